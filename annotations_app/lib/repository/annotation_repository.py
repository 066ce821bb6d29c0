"""
Annotation repository.

Reads are scoped by AccessFilter values built in access_control.py; this
module only renders them into SQL and never decides visibility itself.
"""

import sqlite3
from typing import Iterable, Optional

from ..access_control import AccessFilter
from ..access_levels import AccessLevel
from ..database import DatabaseManager
from ..models import Annotation
from .base import RecordNotFoundError, id_placeholders, parse_timestamp


class AnnotationRepository:
    """Annotation data access."""

    def __init__(self, db_manager: DatabaseManager, logger=None):
        self.db = db_manager
        self.logger = logger

    def _row_to_model(self, row) -> Annotation:
        data = dict(row)
        for field in ('created_at', 'updated_at'):
            data[field] = parse_timestamp(data.get(field))
        return Annotation.model_validate(data)

    def insert(self, annotation: Annotation, conn: sqlite3.Connection) -> Annotation:
        """
        Insert a fully resolved annotation inside an open transaction.

        Returns:
            Copy of the annotation carrying its new id
        """
        cursor = conn.execute(
            """
            INSERT INTO annotations
                (document_id, account_id, organization_id, page_number, title, content,
                 access, comment_access, location)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (annotation.document_id, annotation.account_id, annotation.organization_id,
             annotation.page_number, annotation.title, annotation.content,
             int(annotation.access), int(annotation.comment_access), annotation.location)
        )
        row = conn.execute(
            "SELECT * FROM annotations WHERE id = ?", (cursor.lastrowid,)
        ).fetchone()
        return self._row_to_model(row)

    def delete(self, annotation_id: int, conn: sqlite3.Connection) -> Optional[int]:
        """
        Delete an annotation inside an open transaction.

        Returns:
            Document id of the deleted annotation, or None if it did not exist
        """
        row = conn.execute(
            "SELECT document_id FROM annotations WHERE id = ?", (annotation_id,)
        ).fetchone()
        if row is None:
            return None
        conn.execute("DELETE FROM annotations WHERE id = ?", (annotation_id,))
        return row['document_id']

    def get_annotation(self, annotation_id: int) -> Annotation:
        """
        Raises:
            RecordNotFoundError: If the annotation does not exist
        """
        row = self.db.execute_query(
            "SELECT * FROM annotations WHERE id = ?", (annotation_id,), fetch_one=True
        )
        if row is None:
            raise RecordNotFoundError('annotations', annotation_id)
        return self._row_to_model(row)

    def select(
        self,
        access_filter: Optional[AccessFilter] = None,
        document_ids: Optional[Iterable[int]] = None,
        account_id: Optional[int] = None,
        access: Optional[AccessLevel] = None
    ) -> list[Annotation]:
        """
        Select annotations matching all given restrictions.

        Args:
            access_filter: Visibility filter for the viewer (None = unscoped)
            document_ids: Restrict to these documents
            account_id: Restrict to annotations authored by this account
            access: Restrict to one access level

        Returns:
            Annotations ordered by document, page and id
        """
        where, params = self._where(access_filter, document_ids, account_id, access)
        rows = self.db.execute_query(
            f"SELECT annotations.* FROM annotations WHERE {where} "
            "ORDER BY annotations.document_id, annotations.page_number, annotations.id",
            params
        )
        return [self._row_to_model(row) for row in rows]

    def count_by_document(
        self,
        access_filter: AccessFilter,
        document_ids: Iterable[int]
    ) -> dict[int, int]:
        """Count annotations matching access_filter, grouped by document id."""
        document_ids = list(document_ids)
        if not document_ids:
            return {}
        where, params = self._where(access_filter, document_ids)
        rows = self.db.execute_query(
            f"SELECT annotations.document_id, COUNT(*) AS count FROM annotations "
            f"WHERE {where} GROUP BY annotations.document_id",
            params
        )
        return {row['document_id']: row['count'] for row in rows}

    def count_public_for_document(self, document_id: int, conn: Optional[sqlite3.Connection] = None) -> int:
        query = "SELECT COUNT(*) AS count FROM annotations WHERE document_id = ? AND access = ?"
        params = (document_id, int(AccessLevel.PUBLIC))
        if conn is not None:
            return conn.execute(query, params).fetchone()['count']
        return self.db.execute_query(query, params, fetch_one=True)['count']

    def public_counts_by_organization(self) -> dict[int, int]:
        """Count PUBLIC annotations on PUBLIC documents, grouped by organization id."""
        rows = self.db.execute_query(
            """
            SELECT annotations.organization_id, COUNT(*) AS count
            FROM annotations
            INNER JOIN documents ON documents.id = annotations.document_id
            WHERE annotations.access = ? AND documents.access = ?
            GROUP BY annotations.organization_id
            """,
            (int(AccessLevel.PUBLIC), int(AccessLevel.PUBLIC))
        )
        return {row['organization_id']: row['count'] for row in rows}

    def recompute_public_note_counts(self) -> int:
        """
        Recompute every document's public_note_count in one statement.

        Returns:
            Number of documents whose stored count changed
        """
        return self.db.execute_update(
            """
            UPDATE documents SET public_note_count = (
                SELECT COUNT(*) FROM annotations
                WHERE annotations.document_id = documents.id AND annotations.access = ?
            )
            WHERE public_note_count != (
                SELECT COUNT(*) FROM annotations
                WHERE annotations.document_id = documents.id AND annotations.access = ?
            )
            """,
            (int(AccessLevel.PUBLIC), int(AccessLevel.PUBLIC))
        )

    def _where(
        self,
        access_filter: Optional[AccessFilter] = None,
        document_ids: Optional[Iterable[int]] = None,
        account_id: Optional[int] = None,
        access: Optional[AccessLevel] = None
    ) -> tuple[str, list]:
        parts = []
        params: list = []
        if access_filter is not None:
            sql, filter_params = access_filter.to_sql('annotations')
            parts.append(sql)
            params.extend(filter_params)
        if document_ids is not None:
            placeholders, ids = id_placeholders(document_ids)
            if ids:
                parts.append(f"annotations.document_id IN ({placeholders})")
                params.extend(ids)
            else:
                parts.append("0 = 1")
        if account_id is not None:
            parts.append("annotations.account_id = ?")
            params.append(account_id)
        if access is not None:
            parts.append("annotations.access = ?")
            params.append(int(access))
        return (" AND ".join(parts) if parts else "1 = 1"), params
