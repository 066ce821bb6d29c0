"""
Comment repository.
"""

from typing import Iterable, Optional

from ..access_levels import AccessLevel
from ..database import DatabaseManager
from ..models import Comment
from .base import id_placeholders, parse_timestamp


class CommentRepository:
    """Comment data access."""

    def __init__(self, db_manager: DatabaseManager, logger=None):
        self.db = db_manager
        self.logger = logger

    def _row_to_model(self, row) -> Comment:
        data = dict(row)
        data['created_at'] = parse_timestamp(data.get('created_at'))
        return Comment.model_validate(data)

    def create_comment(
        self,
        annotation_id: int,
        text: str,
        commenter_id: Optional[int] = None,
        organization_id: Optional[int] = None,
        access: AccessLevel = AccessLevel.PUBLIC
    ) -> Comment:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO comments (annotation_id, commenter_id, organization_id, access, text)
                VALUES (?, ?, ?, ?, ?)
                """,
                (annotation_id, commenter_id, organization_id, int(access), text)
            )
            row = conn.execute(
                "SELECT * FROM comments WHERE id = ?", (cursor.lastrowid,)
            ).fetchone()
        return self._row_to_model(row)

    def comments_for_annotations(self, annotation_ids: Iterable[int]) -> dict[int, list[Comment]]:
        """
        Load the comments of many annotations in one query.

        Returns:
            Mapping of annotation id to its comments in creation order;
            every requested id is present
        """
        placeholders, params = id_placeholders(annotation_ids)
        comments: dict[int, list[Comment]] = {annotation_id: [] for annotation_id in params}
        if not params:
            return comments
        rows = self.db.execute_query(
            f"SELECT * FROM comments WHERE annotation_id IN ({placeholders}) ORDER BY id",
            params
        )
        for row in rows:
            comments[row['annotation_id']].append(self._row_to_model(row))
        return comments
