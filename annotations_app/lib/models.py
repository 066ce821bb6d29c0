"""
Pydantic models for annotations and the entities they relate to.

These models are plain data: the only behavior they carry are derived
fields and the relational capabilities (owns, collaborates, shared,
accessible_to) that the access policies consume.
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import datetime
from typing import Any, Callable, Iterable, Optional

from .access_levels import AccessLevel, Role, COLLABORATOR_ROLES


class Organization(BaseModel):
    """A tenant owning accounts and documents."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    slug: str = ''


class Account(BaseModel):
    """
    A user account, used both as annotation author and as viewer.

    accessible_project_ids and shared_document_ids are resolved by the
    account repository when the account is loaded. Checks that must see
    project changes made after loading pass a resolve_documents callable
    (project ids -> document ids) instead of relying on that snapshot.
    """
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: Optional[int] = None
    first_name: str = ''
    last_name: str = ''
    email: Optional[str] = None
    role: Role = Role.CONTRIBUTOR
    accessible_project_ids: set[int] = Field(default_factory=set)
    shared_document_ids: set[int] = Field(default_factory=set)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def owns(self, resource: Any) -> bool:
        """True if the account authored the resource."""
        return getattr(resource, 'account_id', None) == self.id

    def collaborates(self, resource: Any) -> bool:
        """True if the account is an organization collaborator on the resource."""
        if self.organization_id is None or self.role not in COLLABORATOR_ROLES:
            return False
        return getattr(resource, 'organization_id', None) == self.organization_id

    def owns_or_collaborates(self, resource: Any) -> bool:
        return self.owns(resource) or self.collaborates(resource)

    def reachable_document_ids(
        self,
        resolve_documents: Optional[Callable[[set[int]], Iterable[int]]] = None
    ) -> frozenset:
        """Document ids reachable through the account's projects."""
        if not self.accessible_project_ids:
            return frozenset()
        if resolve_documents is not None:
            return frozenset(resolve_documents(set(self.accessible_project_ids)))
        return frozenset(self.shared_document_ids)

    def shared(
        self,
        resource: Any,
        resolve_documents: Optional[Callable[[set[int]], Iterable[int]]] = None
    ) -> bool:
        """True if the resource's document is reachable through one of the account's projects."""
        return getattr(resource, 'document_id', None) in self.reachable_document_ids(resolve_documents)


class Document(BaseModel):
    """Parent document of annotations."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    organization_id: int
    account_id: int
    title: str = ''
    slug: str = ''
    access: AccessLevel = AccessLevel.PRIVATE
    comment_access: AccessLevel = AccessLevel.PRIVATE
    cacheable: bool = False
    published_url: Optional[str] = None
    public_note_count: int = 0

    @property
    def canonical_id(self) -> str:
        return f"{self.id}-{self.slug}" if self.slug else str(self.id)

    def _server_root(self, allow_ssl: bool = False) -> str:
        from ..config import get_settings
        scheme = 'https' if allow_ssl else 'http'
        return f"{scheme}://{get_settings().server_root}"

    def canonical_url(self, format: str = 'html', allow_ssl: bool = False) -> str:
        return f"{self._server_root(allow_ssl)}/documents/{self.canonical_id}.{format}"

    def document_viewer_url(self, allow_ssl: bool = False, page: Optional[int] = None) -> str:
        suffix = f"#document/p{page}" if page else ''
        return self.canonical_url('html', allow_ssl=allow_ssl) + suffix

    @property
    def page_image_url_template(self) -> str:
        from ..config import get_settings
        pages_url = f"{get_settings().asset_root}/documents/{self.id}/pages"
        return f"{pages_url}/{self.slug}-p{{page}}-{{size}}.gif"


class Page(BaseModel):
    """One page of a document."""
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    document_id: int
    page_number: int
    text: str = ''


class Project(BaseModel):
    """A project groups documents and grants its collaborators shared access."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    account_id: Optional[int] = None
    title: str = ''


class ProjectMembership(BaseModel):
    """Membership of a document in a project."""
    model_config = ConfigDict(from_attributes=True)

    project_id: int
    document_id: int


class Comment(BaseModel):
    """A comment nested under an annotation."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    annotation_id: int
    commenter_id: Optional[int] = None
    organization_id: Optional[int] = None
    access: AccessLevel = AccessLevel.PUBLIC
    text: str = ''
    created_at: Optional[datetime] = None

    def accessible_to(self, account: Optional[Account]) -> bool:
        """Public comments are visible to anyone; others to the commenter's organization."""
        if self.access == AccessLevel.PUBLIC:
            return True
        if account is None:
            return False
        if self.commenter_id is not None and account.id == self.commenter_id:
            return True
        if self.access == AccessLevel.PRIVATE:
            return False
        return self.organization_id is not None and account.organization_id == self.organization_id

    def canonical(self) -> dict:
        data = {
            'id': self.id,
            'text': self.text,
            'commenter_id': self.commenter_id,
            'access': self.access.wire_name,
        }
        if self.created_at:
            data['created_at'] = self.created_at.isoformat()
        return data


class AuthorInfo(BaseModel):
    """Display information about an annotation's author."""
    full_name: str
    account_id: Optional[int] = None
    owns_note: bool = False
    organization_name: Optional[str] = None


class AnnotationCreate(BaseModel):
    """
    Candidate field set for a new annotation.

    Every field the annotation can inherit from its document is optional
    here; the defaulting resolver fills them in.
    """
    title: Optional[str] = None
    content: Optional[str] = None
    page_number: Optional[int] = None
    account_id: Optional[int] = None
    organization_id: Optional[int] = None
    access: Optional[AccessLevel] = None
    comment_access: Optional[AccessLevel] = None
    location: Optional[str] = None


class Annotation(BaseModel):
    """
    A persisted annotation on one page of a document.

    author is populated by the attribution step and is never stored.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    document_id: int
    account_id: int
    organization_id: int
    page_number: int
    title: str
    content: Optional[str] = None
    access: AccessLevel
    comment_access: AccessLevel
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    author: Optional[AuthorInfo] = Field(default=None, exclude=True)

    @field_validator('title')
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Reject blank titles; callers heal them before construction."""
        if not v or not v.strip():
            raise ValueError("title must not be blank")
        return v

    @property
    def access_name(self) -> str:
        return self.access.wire_name
