"""
Field defaulting for new annotations.

An annotation inherits its author, organization and access levels from the
parent document unless the caller supplied them. Resolution happens once,
before the first insert, and is never re-run on later updates.
"""

from typing import Optional
import logging

from .models import Annotation, AnnotationCreate, Document

logger = logging.getLogger(__name__)

# Inherited from the parent document when the caller leaves them out
INHERITED_FIELDS = ('organization_id', 'account_id', 'access', 'comment_access')

# Must be present once defaulting is done
REQUIRED_FIELDS = (
    'title', 'page_number', 'organization_id', 'account_id',
    'document_id', 'access', 'comment_access'
)


class AnnotationValidationError(ValueError):
    """
    Raised when an annotation cannot be created.

    Attributes:
        missing_fields -- names of required fields that are still absent
    """
    def __init__(self, missing_fields: list[str]):
        self.missing_fields = list(missing_fields)
        super().__init__(f"Missing required fields: {', '.join(self.missing_fields)}")


def heal_title(title: Optional[str], placeholder: Optional[str] = None) -> str:
    """Replace a blank title with the placeholder title."""
    if title is None or not title.strip():
        if placeholder is None:
            from ..config import get_settings
            placeholder = get_settings().UNTITLED_TITLE
        return placeholder
    return title


def resolve_annotation_fields(
    candidate: AnnotationCreate,
    document: Document,
    untitled_title: Optional[str] = None
) -> Annotation:
    """
    Resolve the complete field set of a new annotation.

    Args:
        candidate: Values supplied by the caller
        document: Parent document to inherit from
        untitled_title: Placeholder for blank titles (defaults to settings)

    Returns:
        Annotation model without an id, ready to be inserted

    Raises:
        AnnotationValidationError: If required fields are missing after defaulting
    """
    values = candidate.model_dump()
    values['title'] = heal_title(values.get('title'), untitled_title)
    values['document_id'] = document.id

    for field in INHERITED_FIELDS:
        if values.get(field) is None:
            values[field] = getattr(document, field, None)

    missing = [field for field in REQUIRED_FIELDS if values.get(field) is None]
    if missing:
        logger.debug(f"Rejecting annotation on document {document.id}: missing {missing}")
        raise AnnotationValidationError(missing)

    return Annotation.model_validate(values)
