"""
Document repository.

Besides CRUD for documents and pages it owns the denormalized
public_note_count column; recomputation logic lives in aggregation.py.
"""

import sqlite3
from typing import Iterable, Optional

from ..access_levels import AccessLevel
from ..database import DatabaseManager
from ..models import Document, Page
from .base import RecordNotFoundError, id_placeholders


class DocumentRepository:
    """Document and page data access."""

    def __init__(self, db_manager: DatabaseManager, logger=None):
        self.db = db_manager
        self.logger = logger

    def _row_to_model(self, row) -> Document:
        data = dict(row)
        data['cacheable'] = bool(data['cacheable'])
        return Document.model_validate(data)

    def create_document(
        self,
        organization_id: int,
        account_id: int,
        title: str = '',
        slug: str = '',
        access: AccessLevel = AccessLevel.PRIVATE,
        comment_access: Optional[AccessLevel] = None,
        cacheable: bool = False,
        published_url: Optional[str] = None
    ) -> Document:
        """Insert a document; comment_access defaults to the document's access."""
        if comment_access is None:
            comment_access = access
        with self.db.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO documents
                    (organization_id, account_id, title, slug, access, comment_access,
                     cacheable, published_url)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (organization_id, account_id, title, slug, int(access), int(comment_access),
                 int(cacheable), published_url)
            )
            document_id = cursor.lastrowid
        return self.get_document(document_id)

    def get_document(self, document_id: int, conn: Optional[sqlite3.Connection] = None) -> Document:
        """
        Raises:
            RecordNotFoundError: If the document does not exist
        """
        query = "SELECT * FROM documents WHERE id = ?"
        if conn is not None:
            row = conn.execute(query, (document_id,)).fetchone()
            row = dict(row) if row else None
        else:
            row = self.db.execute_query(query, (document_id,), fetch_one=True)
        if row is None:
            raise RecordNotFoundError('documents', document_id)
        return self._row_to_model(row)

    def get_documents(self, document_ids: Iterable[int]) -> dict[int, Document]:
        """Bulk load documents keyed by id; unknown ids are absent."""
        placeholders, params = id_placeholders(document_ids)
        if not params:
            return {}
        rows = self.db.execute_query(
            f"SELECT * FROM documents WHERE id IN ({placeholders})", params
        )
        return {row['id']: self._row_to_model(row) for row in rows}

    def set_access(self, document_id: int, access: AccessLevel) -> None:
        self.db.execute_update(
            "UPDATE documents SET access = ? WHERE id = ?", (int(access), document_id)
        )

    def add_page(self, document_id: int, page_number: int, text: str = '') -> Page:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO pages (document_id, page_number, text) VALUES (?, ?, ?)",
                (document_id, page_number, text)
            )
            page_id = cursor.lastrowid
        return Page(id=page_id, document_id=document_id, page_number=page_number, text=text)

    def find_page(self, document_id: int, page_number: int) -> Optional[Page]:
        row = self.db.execute_query(
            "SELECT * FROM pages WHERE document_id = ? AND page_number = ?",
            (document_id, page_number),
            fetch_one=True
        )
        return Page.model_validate(row) if row else None

    def set_public_note_count(
        self,
        document_id: int,
        count: int,
        conn: Optional[sqlite3.Connection] = None
    ) -> bool:
        """
        Store a document's public note count if it changed.

        Returns:
            True if the stored value was updated
        """
        query = "UPDATE documents SET public_note_count = ? WHERE id = ? AND public_note_count != ?"
        params = (count, document_id, count)
        if conn is not None:
            updated = conn.execute(query, params).rowcount > 0
        else:
            updated = self.db.execute_update(query, params) > 0
        if updated and self.logger:
            self.logger.debug(f"Document {document_id} public_note_count -> {count}")
        return updated
