"""
Repository layer for data access.

Thin SQLite data access objects; visibility decisions are made by the
policy modules and handed to repositories as AccessFilter values.
"""

from annotations_app.lib.repository.base import RecordNotFoundError
from annotations_app.lib.repository.organization_repository import OrganizationRepository
from annotations_app.lib.repository.account_repository import AccountRepository
from annotations_app.lib.repository.document_repository import DocumentRepository
from annotations_app.lib.repository.project_repository import ProjectRepository
from annotations_app.lib.repository.annotation_repository import AnnotationRepository
from annotations_app.lib.repository.comment_repository import CommentRepository

__all__ = [
    "RecordNotFoundError",
    "OrganizationRepository",
    "AccountRepository",
    "DocumentRepository",
    "ProjectRepository",
    "AnnotationRepository",
    "CommentRepository",
]
