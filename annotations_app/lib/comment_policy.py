"""
Comment permissions nested inside an annotation's visibility.

allows_comments() decides whether a viewer may comment on (and read the
comment thread of) an annotation it can already see. Individual comments
are then filtered by their own accessible_to() capability; CommentCache
keeps that filtered list for the duration of one request.
"""

from typing import Iterable, Optional
import logging

from .access_control import DocumentResolver
from .access_levels import AccessLevel, ORGANIZATION_LEVELS
from .models import Account, Annotation, Comment

logger = logging.getLogger(__name__)


def allows_comments(
    annotation: Annotation,
    viewer: Optional[Account],
    resolve_documents: Optional[DocumentResolver] = None
) -> bool:
    """
    Check whether viewer may comment on the annotation.

    Anonymous viewers and viewers without an organization are limited to
    annotations whose comment_access is PUBLIC.

    Args:
        annotation: Annotation being commented on
        viewer: Viewing account, or None for anonymous access
        resolve_documents: Optional callable mapping project ids to document ids
    """
    comment_access = annotation.comment_access

    if comment_access == AccessLevel.PUBLIC:
        return True

    if viewer is None or viewer.organization_id is None:
        logger.debug(
            f"COMMENT POLICY: annotation {annotation.id} requires an organization member, "
            f"comment_access={comment_access.wire_name}"
        )
        return False

    if comment_access == AccessLevel.PRIVATE:
        return viewer.owns(annotation)

    if comment_access in ORGANIZATION_LEVELS:
        return viewer.owns_or_collaborates(annotation) or viewer.shared(annotation, resolve_documents)

    return False


class CommentCache:
    """
    Request-scoped memo of the comments each annotation exposes to one viewer.

    Create one per request; entries are keyed by annotation id and are
    never invalidated, so an instance must not outlive the request.
    """

    def __init__(self, viewer: Optional[Account] = None):
        self.viewer = viewer
        self._comments: dict[int, list[Comment]] = {}

    def accessible_comments(self, annotation: Annotation, comments: Iterable[Comment]) -> list[Comment]:
        """
        Comments of annotation that the cached viewer may read.

        Args:
            annotation: Owning annotation
            comments: All comments of the annotation (only consulted on the first call)
        """
        key = annotation.id
        if key not in self._comments:
            self._comments[key] = [c for c in comments if c.accessible_to(self.viewer)]
        return self._comments[key]

    def is_cached(self, annotation: Annotation) -> bool:
        return annotation.id in self._comments

    def clear(self) -> None:
        self._comments.clear()
