"""
Project repository.

Projects group documents (project_memberships) and are shared with
collaborating accounts (project_collaborations). An account reaches a
project it owns or collaborates on; through it, the account reaches every
document of the project regardless of the document's organization.
"""

from typing import Iterable, Optional

from ..database import DatabaseManager
from ..models import Project, ProjectMembership
from .base import RecordNotFoundError, id_placeholders


class ProjectRepository:
    """Project, membership and collaboration data access."""

    def __init__(self, db_manager: DatabaseManager, logger=None):
        self.db = db_manager
        self.logger = logger

    def create_project(self, title: str, account_id: Optional[int] = None) -> Project:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO projects (account_id, title) VALUES (?, ?)",
                (account_id, title)
            )
            project_id = cursor.lastrowid
        return Project(id=project_id, account_id=account_id, title=title)

    def get_project(self, project_id: int) -> Project:
        row = self.db.execute_query(
            "SELECT * FROM projects WHERE id = ?", (project_id,), fetch_one=True
        )
        if row is None:
            raise RecordNotFoundError('projects', project_id)
        return Project.model_validate(row)

    def add_document(self, project_id: int, document_id: int) -> ProjectMembership:
        """Add a document to a project (idempotent)."""
        self.db.execute_update(
            "INSERT OR IGNORE INTO project_memberships (project_id, document_id) VALUES (?, ?)",
            (project_id, document_id)
        )
        return ProjectMembership(project_id=project_id, document_id=document_id)

    def remove_document(self, project_id: int, document_id: int) -> bool:
        return self.db.execute_update(
            "DELETE FROM project_memberships WHERE project_id = ? AND document_id = ?",
            (project_id, document_id)
        ) > 0

    def add_collaborator(self, project_id: int, account_id: int) -> None:
        """Share a project with an account (idempotent)."""
        self.db.execute_update(
            "INSERT OR IGNORE INTO project_collaborations (project_id, account_id) VALUES (?, ?)",
            (project_id, account_id)
        )
        if self.logger:
            self.logger.info(f"Shared project {project_id} with account {account_id}")

    def remove_collaborator(self, project_id: int, account_id: int) -> bool:
        return self.db.execute_update(
            "DELETE FROM project_collaborations WHERE project_id = ? AND account_id = ?",
            (project_id, account_id)
        ) > 0

    def accessible_project_ids(self, account_id: int) -> set[int]:
        """Ids of projects the account owns or collaborates on."""
        rows = self.db.execute_query(
            """
            SELECT id AS project_id FROM projects WHERE account_id = ?
            UNION
            SELECT project_id FROM project_collaborations WHERE account_id = ?
            """,
            (account_id, account_id)
        )
        return {row['project_id'] for row in rows}

    def document_ids_for_projects(self, project_ids: Iterable[int]) -> set[int]:
        """
        Distinct document ids reachable through the given projects.

        Args:
            project_ids: Project ids (empty = no documents)
        """
        placeholders, params = id_placeholders(project_ids)
        if not params:
            return set()
        rows = self.db.execute_query(
            f"SELECT DISTINCT document_id FROM project_memberships WHERE project_id IN ({placeholders})",
            params
        )
        return {row['document_id'] for row in rows}
