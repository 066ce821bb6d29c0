"""
Aggregate annotation counts.

Each function issues a fixed number of queries regardless of how many
documents or annotations are involved.
"""

import sqlite3
from typing import Iterable, Optional
import logging

from .access_control import build_access_filter
from .models import Account, Document
from .repository.annotation_repository import AnnotationRepository
from .repository.document_repository import DocumentRepository
from .repository.project_repository import ProjectRepository

logger = logging.getLogger(__name__)


def counts_by_document(
    viewer: Optional[Account],
    documents: Iterable[Document],
    annotations: AnnotationRepository,
    projects: Optional[ProjectRepository] = None
) -> dict[int, int]:
    """
    Count the annotations viewer may see on each document.

    Args:
        viewer: Viewing account, or None for anonymous access
        documents: Documents to count for
        annotations: Annotation repository
        projects: Resolves shared project documents; the viewer's preloaded
            shared_document_ids are used when omitted

    Returns:
        Mapping of document id to visible annotation count; documents
        without visible annotations are absent
    """
    document_ids = [document.id for document in documents]
    if not document_ids:
        return {}
    resolver = projects.document_ids_for_projects if projects is not None else None
    access_filter = build_access_filter(viewer, resolver)
    return annotations.count_by_document(access_filter, document_ids)


def public_note_counts_by_organization(annotations: AnnotationRepository) -> dict[int, int]:
    """
    Count PUBLIC annotations on PUBLIC documents, grouped by organization id.

    Independent of any viewer.
    """
    return annotations.public_counts_by_organization()


def reset_public_note_count(
    document_id: int,
    annotations: AnnotationRepository,
    documents: DocumentRepository,
    conn: Optional[sqlite3.Connection] = None
) -> int:
    """
    Refresh one document's denormalized public note count.

    Args:
        document_id: Document whose counter is refreshed
        annotations: Annotation repository
        documents: Document repository
        conn: Open transaction to run in, so the refresh commits with the
            annotation change that triggered it

    Returns:
        The recomputed count
    """
    count = annotations.count_public_for_document(document_id, conn=conn)
    documents.set_public_note_count(document_id, count, conn=conn)
    return count


def recompute_public_note_counts(annotations: AnnotationRepository) -> int:
    """
    Recompute the public note count of every document.

    Repairs counters left stale by missed or duplicated refreshes.

    Returns:
        Number of documents whose counter changed
    """
    changed = annotations.recompute_public_note_counts()
    logger.info(f"Recomputed public note counts, {changed} documents changed")
    return changed
