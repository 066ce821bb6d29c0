"""
Annotation service.

Wires the policy modules to the repositories for the read and write paths
the serving layer uses. Every method issues a bounded number of queries,
independent of how many annotations are involved.
"""

from pathlib import Path
from typing import Iterable, Optional, Sequence

from .access_control import build_access_filter, is_visible
from .access_levels import AccessLevel
from .aggregation import (
    counts_by_document,
    public_note_counts_by_organization,
    recompute_public_note_counts,
    reset_public_note_count,
)
from .annotation_defaults import resolve_annotation_fields
from .attribution import populate_author_info
from .comment_policy import CommentCache, allows_comments
from .database import DatabaseManager
from .logging_utils import get_logger
from .models import Account, Annotation, AnnotationCreate, Document, Page
from .repository import (
    AccountRepository,
    AnnotationRepository,
    CommentRepository,
    DocumentRepository,
    ProjectRepository,
)
from .serializer import CanonicalOptions, SerializationContext, canonical

logger = get_logger(__name__)


class AnnotationService:
    """Entry point for creating, reading and serializing annotations."""

    def __init__(self, db_manager: DatabaseManager, logger=None):
        self.db = db_manager
        self.logger = logger
        self.accounts = AccountRepository(db_manager, logger)
        self.documents = DocumentRepository(db_manager, logger)
        self.projects = ProjectRepository(db_manager, logger)
        self.annotations = AnnotationRepository(db_manager, logger)
        self.comments = CommentRepository(db_manager, logger)

    @classmethod
    def from_settings(cls, settings=None) -> "AnnotationService":
        if settings is None:
            from ..config import get_settings
            settings = get_settings()
        return cls(DatabaseManager(Path(settings.db_path), logger=logger), logger=logger)

    # Writes

    def create_annotation(self, document_id: int, candidate: AnnotationCreate) -> Annotation:
        """
        Create an annotation on a document.

        Inherited fields are resolved once, then the annotation is inserted and
        the document's public note count refreshed in the same transaction.

        Raises:
            RecordNotFoundError: If the document does not exist
            AnnotationValidationError: If required fields are missing
        """
        with self.db.transaction() as conn:
            document = self.documents.get_document(document_id, conn=conn)
            annotation = self.annotations.insert(resolve_annotation_fields(candidate, document), conn)
            reset_public_note_count(document.id, self.annotations, self.documents, conn=conn)

        logger.info(
            f"Created annotation {annotation.id} on document {document_id} "
            f"(access={annotation.access_name})"
        )
        return annotation

    def destroy_annotation(self, annotation_id: int) -> bool:
        """
        Delete an annotation and refresh its document's public note count.

        Returns:
            False if the annotation did not exist
        """
        with self.db.transaction() as conn:
            document_id = self.annotations.delete(annotation_id, conn)
            if document_id is None:
                return False
            reset_public_note_count(document_id, self.annotations, self.documents, conn=conn)

        logger.info(f"Deleted annotation {annotation_id} from document {document_id}")
        return True

    # Reads

    def get_account(self, account_id: int) -> Account:
        return self.accounts.get_account(account_id)

    # Every read path resolves project reach through the same live query, so
    # membership changes made after the viewer was loaded apply everywhere.

    def is_visible(self, annotation: Annotation, viewer: Optional[Account]) -> bool:
        return is_visible(annotation, viewer, self.projects.document_ids_for_projects)

    def allows_comments(self, annotation: Annotation, viewer: Optional[Account]) -> bool:
        return allows_comments(annotation, viewer, self.projects.document_ids_for_projects)

    def accessible_annotations(
        self,
        viewer: Optional[Account],
        document_ids: Optional[Iterable[int]] = None
    ) -> list[Annotation]:
        """Annotations viewer may see, optionally restricted to some documents."""
        access_filter = build_access_filter(viewer, self.projects.document_ids_for_projects)
        return self.annotations.select(access_filter, document_ids=document_ids)

    def owned_by(self, account: Account) -> list[Annotation]:
        return self.annotations.select(account_id=account.id)

    def unrestricted(self) -> list[Annotation]:
        return self.annotations.select(access=AccessLevel.PUBLIC)

    def counts_for_documents(self, viewer: Optional[Account], documents: Iterable[Document]) -> dict[int, int]:
        return counts_by_document(viewer, documents, self.annotations, self.projects)

    def public_note_counts_by_organization(self) -> dict[int, int]:
        return public_note_counts_by_organization(self.annotations)

    def recompute_public_note_counts(self) -> int:
        return recompute_public_note_counts(self.annotations)

    def find_page(self, annotation: Annotation) -> Optional[Page]:
        return self.documents.find_page(annotation.document_id, annotation.page_number)

    # Serialization

    def canonical_batch(
        self,
        notes: Sequence[Annotation],
        viewer: Optional[Account],
        options: Optional[CanonicalOptions] = None,
        comment_cache: Optional[CommentCache] = None
    ) -> list[dict]:
        """
        Serialize a batch of annotations for viewer.

        Performs at most three reads: authors, documents (only when a URL
        option is set) and comments (only when comments are included).

        Raises:
            ValueError: If comment_cache was created for a different viewer
        """
        options = options or CanonicalOptions()
        context = SerializationContext(viewer, comment_cache=comment_cache)
        if not notes:
            return []

        populate_author_info(notes, viewer, self.accounts)

        if options.include_image_url or options.include_document_url:
            context.documents = self.documents.get_documents({note.document_id for note in notes})

        if options.include_comments:
            context.comments = self.comments.comments_for_annotations(note.id for note in notes)

        return [canonical(note, options, context) for note in notes]
