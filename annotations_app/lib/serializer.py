"""
Canonical representation of annotations.

canonical() builds the mapping handed to the serving layer. Document
lookups and comment threads come from a SerializationContext, which holds
the request-scoped CommentCache so each annotation's filtered comment list
is computed once per request.
"""

import json
from dataclasses import dataclass
from typing import Optional

from .access_levels import AccessLevel
from .comment_policy import CommentCache
from .models import Account, Annotation, Comment, Document


@dataclass
class CanonicalOptions:
    """Options for canonical()."""
    include_comments: bool = True
    include_image_url: bool = False
    include_document_url: bool = False


DEFAULT_CANONICAL_OPTIONS = CanonicalOptions()


def _viewer_id(viewer: Optional[Account]) -> Optional[int]:
    return viewer.id if viewer is not None else None


class SerializationContext:
    """
    Per-request inputs for serialization.

    Args:
        viewer: Viewing account, or None for anonymous access
        documents: Parent documents keyed by id
        comments: All comments keyed by annotation id
        comment_cache: Cache to reuse; a new one is created for viewer otherwise

    Raises:
        ValueError: If comment_cache was created for a different viewer
    """

    def __init__(
        self,
        viewer: Optional[Account] = None,
        documents: Optional[dict[int, Document]] = None,
        comments: Optional[dict[int, list[Comment]]] = None,
        comment_cache: Optional[CommentCache] = None
    ):
        self.viewer = viewer
        self.documents = documents or {}
        self.comments = comments or {}
        if comment_cache is None:
            comment_cache = CommentCache(viewer)
        elif _viewer_id(comment_cache.viewer) != _viewer_id(viewer):
            raise ValueError(
                f"Comment cache belongs to viewer {_viewer_id(comment_cache.viewer)}, "
                f"not {_viewer_id(viewer)}"
            )
        self.comment_cache = comment_cache

    def document_for(self, annotation: Annotation) -> Document:
        try:
            return self.documents[annotation.document_id]
        except KeyError:
            raise LookupError(
                f"Document {annotation.document_id} of annotation {annotation.id} not loaded"
            ) from None

    def accessible_comments(self, annotation: Annotation) -> list[Comment]:
        return self.comment_cache.accessible_comments(
            annotation, self.comments.get(annotation.id, [])
        )


def canonical(
    annotation: Annotation,
    options: Optional[CanonicalOptions] = None,
    context: Optional[SerializationContext] = None
) -> dict:
    """
    Build the canonical mapping of an annotation.

    Args:
        annotation: Annotation to serialize
        options: Output options (defaults include comments only)
        context: Request context; required for image/document URLs

    Returns:
        JSON-serializable dict
    """
    options = options or DEFAULT_CANONICAL_OPTIONS
    context = context or SerializationContext()

    data = {
        'id': annotation.id,
        'page': annotation.page_number,
        'title': annotation.title,
        'content': annotation.content,
        'access': annotation.access_name,
        'comment_access': int(annotation.comment_access),
    }
    if annotation.location is not None:
        data['location'] = {'image': annotation.location}
    if options.include_image_url:
        data['image_url'] = context.document_for(annotation).page_image_url_template
    if options.include_document_url:
        document = context.document_for(annotation)
        data['published_url'] = document.published_url or document.document_viewer_url(allow_ssl=True)
    if annotation.author is not None:
        data.update({
            'author': annotation.author.full_name,
            'owns_note': annotation.author.owns_note,
            'author_organization': annotation.author.organization_name,
        })
    if options.include_comments:
        data['comments'] = [comment.canonical() for comment in context.accessible_comments(annotation)]
    return data


def annotation_json(
    annotation: Annotation,
    options: Optional[CanonicalOptions] = None,
    context: Optional[SerializationContext] = None
) -> str:
    """Canonical form plus ownership ids, encoded as JSON."""
    data = canonical(annotation, options, context)
    data.update({
        'document_id': annotation.document_id,
        'account_id': annotation.account_id,
        'organization_id': annotation.organization_id,
    })
    return json.dumps(data)


def is_cacheable(annotation: Annotation, document: Document) -> bool:
    return annotation.access == AccessLevel.PUBLIC and document.cacheable


def canonical_url(annotation: Annotation, document: Document) -> str:
    return f"{document.canonical_url('html')}#document/{annotation.page_number}"


def canonical_cache_path(annotation: Annotation) -> str:
    return f"/documents/{annotation.document_id}/annotations/{annotation.id}.js"
