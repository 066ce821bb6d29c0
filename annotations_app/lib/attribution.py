"""
Author attribution for batches of annotations.

populate_author_info() performs one bulk author lookup per batch and
attaches an AuthorInfo to every annotation. The author's organization name
is disclosed only for privileged roles (administrator, contributor,
freelancer), even though it is always fetched.
"""

from typing import Callable, Iterable, Optional, Sequence, Union
import logging

from .access_levels import is_privileged
from .models import Account, Annotation, AuthorInfo

logger = logging.getLogger(__name__)

# Maps author account ids to rows with first_name, last_name, role, organization_name
AuthorLookup = Callable[[Iterable[int]], dict[int, dict]]


def _resolve_lookup(author_lookup) -> AuthorLookup:
    # Accept an AccountRepository as well as a plain callable
    find_authors = getattr(author_lookup, 'find_authors', None)
    return find_authors if find_authors is not None else author_lookup


def build_author_info(
    author: Optional[dict],
    account_id: int,
    viewer: Optional[Account],
    unattributed_name: str
) -> AuthorInfo:
    """
    Build the attribution block for one annotation.

    Args:
        author: Author row from the bulk lookup, or None if missing
        account_id: Author account id stored on the annotation
        viewer: Viewing account, or None
        unattributed_name: Name used when the author record is missing
    """
    if author:
        full_name = f"{author['first_name']} {author['last_name']}"
    else:
        full_name = unattributed_name

    info = AuthorInfo(
        full_name=full_name,
        account_id=account_id,
        owns_note=viewer is not None and viewer.id == account_id
    )
    if author and is_privileged(author.get('role')):
        info.organization_name = author.get('organization_name')
    return info


def populate_author_info(
    notes: Sequence[Annotation],
    viewer: Optional[Account],
    author_lookup: Union[AuthorLookup, object],
    unattributed_name: Optional[str] = None
) -> None:
    """
    Attach author information to every annotation of the batch.

    Args:
        notes: Annotations to enrich (modified in place)
        viewer: Viewing account, or None for anonymous access
        author_lookup: AccountRepository or callable returning author rows by account id
        unattributed_name: Placeholder for missing authors (defaults to settings)
    """
    if not notes:
        return

    if unattributed_name is None:
        from ..config import get_settings
        unattributed_name = get_settings().UNATTRIBUTED_NAME

    account_ids = {note.account_id for note in notes}
    authors = _resolve_lookup(author_lookup)(account_ids)

    missing = account_ids - set(authors)
    if missing:
        logger.debug(f"ATTRIBUTION: no author record for accounts {sorted(missing)}")

    for note in notes:
        note.author = build_author_info(
            authors.get(note.account_id), note.account_id, viewer, unattributed_name
        )
