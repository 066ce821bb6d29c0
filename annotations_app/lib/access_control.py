"""
Visibility rules for annotations.

A single rule table drives both read paths:

- is_visible() answers "may this viewer see this annotation?" for one entity
- build_access_filter() produces an AccessFilter that selects every visible
  annotation from a bulk store, either in memory (matches) or as a
  parameterized SQL WHERE fragment (to_sql)

Each rule grants one access level under a viewer-dependent condition:

    public          access = PUBLIC
    organization    access = EXCLUSIVE and organization_id = viewer.organization_id
    author          access = PRIVATE   and account_id = viewer.id
    shared_project  access = EXCLUSIVE and document_id IN <documents reachable
                    through the viewer's projects>

An annotation is visible when any rule that applies to the viewer matches.
Anonymous viewers only get the public rule.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional
import logging

from .access_levels import AccessLevel
from .models import Account

logger = logging.getLogger(__name__)

# Maps a set of project ids to the distinct document ids they contain
DocumentResolver = Callable[[set[int]], Iterable[int]]

# Columns a condition may reference
FILTER_FIELDS = frozenset({'access', 'organization_id', 'account_id', 'document_id'})


def _field_value(record: Any, field: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(field)
    return getattr(record, field, None)


@dataclass(frozen=True)
class Condition:
    """A single comparison of an annotation field against a value."""
    field: str
    op: str  # 'eq' or 'in'
    value: Any

    def __post_init__(self):
        if self.field not in FILTER_FIELDS:
            raise ValueError(f"Unsupported filter field: {self.field}")
        if self.op not in ('eq', 'in'):
            raise ValueError(f"Unsupported filter operator: {self.op}")
        if self.op == 'in':
            object.__setattr__(self, 'value', frozenset(self.value))

    def matches(self, record: Any) -> bool:
        actual = _field_value(record, self.field)
        # NULL never compares equal, in memory as in SQL
        if actual is None or self.value is None:
            return False
        if self.op == 'in':
            return actual in self.value
        return actual == self.value

    def to_sql(self, table: str) -> tuple[str, list]:
        column = f"{table}.{self.field}"
        if self.op == 'in':
            if not self.value:
                return "0 = 1", []
            values = sorted(int(v) for v in self.value)
            placeholders = ', '.join('?' for _ in values)
            return f"{column} IN ({placeholders})", values
        value = int(self.value) if self.value is not None else None
        return f"{column} = ?", [value]


@dataclass(frozen=True)
class Clause:
    """AND-group of conditions, tagged with the rule that produced it."""
    rule: str
    conditions: tuple[Condition, ...]

    def matches(self, record: Any) -> bool:
        return all(condition.matches(record) for condition in self.conditions)

    def to_sql(self, table: str) -> tuple[str, list]:
        parts = []
        params: list = []
        for condition in self.conditions:
            sql, condition_params = condition.to_sql(table)
            parts.append(sql)
            params.extend(condition_params)
        return "(" + " AND ".join(parts) + ")", params


@dataclass(frozen=True)
class AccessFilter:
    """
    OR of AND-groups selecting the annotations a viewer may see.

    The filter is storage agnostic: matches() evaluates it against
    annotation objects or mappings, to_sql() renders it for SQLite.
    """
    clauses: tuple[Clause, ...]

    @property
    def rules(self) -> list[str]:
        return [clause.rule for clause in self.clauses]

    def matches(self, record: Any) -> bool:
        return any(clause.matches(record) for clause in self.clauses)

    def select(self, records: Iterable[Any]) -> list[Any]:
        return [record for record in records if self.matches(record)]

    def to_sql(self, table: str = 'annotations') -> tuple[str, list]:
        """
        Render the filter as a WHERE fragment.

        Returns:
            Tuple of (sql, params) where sql is parenthesized and uses
            positional placeholders
        """
        if not self.clauses:
            return "(0 = 1)", []
        parts = []
        params: list = []
        for clause in self.clauses:
            sql, clause_params = clause.to_sql(table)
            parts.append(sql)
            params.extend(clause_params)
        return "(" + " OR ".join(parts) + ")", params


@dataclass(frozen=True)
class AccessRule:
    """
    One row of the visibility rule table.

    bind() returns the viewer-dependent conditions of the rule, or None when
    the rule does not apply to this viewer at all.
    """
    name: str
    access: AccessLevel
    bind: Callable[[Optional[Account], frozenset], Optional[tuple[Condition, ...]]]

    def clause_for(self, viewer: Optional[Account], reachable: frozenset) -> Optional[Clause]:
        conditions = self.bind(viewer, reachable)
        if conditions is None:
            return None
        return Clause(self.name, (Condition('access', 'eq', self.access),) + conditions)


def _public(viewer, reachable):
    return ()


def _same_organization(viewer, reachable):
    if viewer is None:
        return None
    return (Condition('organization_id', 'eq', viewer.organization_id),)


def _author(viewer, reachable):
    if viewer is None:
        return None
    return (Condition('account_id', 'eq', viewer.id),)


def _shared_project(viewer, reachable):
    if viewer is None or not viewer.accessible_project_ids:
        return None
    return (Condition('document_id', 'in', reachable),)


ACCESS_RULES: tuple[AccessRule, ...] = (
    AccessRule('public', AccessLevel.PUBLIC, _public),
    AccessRule('organization', AccessLevel.EXCLUSIVE, _same_organization),
    AccessRule('author', AccessLevel.PRIVATE, _author),
    AccessRule('shared_project', AccessLevel.EXCLUSIVE, _shared_project),
)


def reachable_document_ids(
    viewer: Optional[Account],
    resolve_documents: Optional[DocumentResolver] = None
) -> frozenset:
    """
    Distinct document ids the viewer reaches through its projects.

    Uses resolve_documents when given, otherwise the ids resolved when the
    account was loaded.
    """
    if viewer is None:
        return frozenset()
    return viewer.reachable_document_ids(resolve_documents)


def build_access_filter(
    viewer: Optional[Account],
    resolve_documents: Optional[DocumentResolver] = None
) -> AccessFilter:
    """
    Build the filter selecting every annotation visible to viewer.

    Args:
        viewer: Viewing account, or None for anonymous access
        resolve_documents: Optional callable mapping project ids to document ids

    Returns:
        AccessFilter equivalent to is_visible() for this viewer
    """
    reachable = reachable_document_ids(viewer, resolve_documents)
    clauses = []
    for rule in ACCESS_RULES:
        clause = rule.clause_for(viewer, reachable)
        if clause is not None:
            clauses.append(clause)
    access_filter = AccessFilter(tuple(clauses))
    logger.debug(
        f"ACCESS CONTROL: filter for viewer={viewer.id if viewer else None} "
        f"uses rules {access_filter.rules}"
    )
    return access_filter


def is_visible(
    annotation: Any,
    viewer: Optional[Account],
    resolve_documents: Optional[DocumentResolver] = None
) -> bool:
    """
    Check whether viewer may see the annotation.

    Pass the same resolve_documents given to build_access_filter() to get the
    same answer as the filter for this viewer.

    Args:
        annotation: Annotation model (or mapping with the same fields)
        viewer: Viewing account, or None for anonymous access
        resolve_documents: Optional callable mapping project ids to document ids
    """
    if _field_value(annotation, 'access') == AccessLevel.PUBLIC:
        return True
    if viewer is None:
        return False

    reachable = reachable_document_ids(viewer, resolve_documents)
    for rule in ACCESS_RULES:
        clause = rule.clause_for(viewer, reachable)
        if clause is not None and clause.matches(annotation):
            logger.debug(
                f"ACCESS CONTROL: annotation {_field_value(annotation, 'id')} "
                f"visible to viewer {viewer.id} via {rule.name}"
            )
            return True
    return False


def filter_accessible(
    annotations: Iterable[Any],
    viewer: Optional[Account],
    resolve_documents: Optional[DocumentResolver] = None
) -> list[Any]:
    """
    Filter an in-memory list of annotations down to the ones viewer may see.

    Args:
        annotations: Annotation models or mappings
        viewer: Viewing account, or None
        resolve_documents: Optional callable mapping project ids to document ids

    Returns:
        Visible annotations in their original order
    """
    return build_access_filter(viewer, resolve_documents).select(annotations)
