"""
Organization repository.
"""

from ..database import DatabaseManager
from ..models import Organization
from .base import RecordNotFoundError


class OrganizationRepository:
    """Create and load organizations."""

    def __init__(self, db_manager: DatabaseManager, logger=None):
        self.db = db_manager
        self.logger = logger

    def create_organization(self, name: str, slug: str = '') -> Organization:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO organizations (name, slug) VALUES (?, ?)",
                (name, slug)
            )
            organization_id = cursor.lastrowid

        if self.logger:
            self.logger.info(f"Created organization {organization_id} ({name})")
        return Organization(id=organization_id, name=name, slug=slug)

    def get_organization(self, organization_id: int) -> Organization:
        """
        Raises:
            RecordNotFoundError: If the organization does not exist
        """
        row = self.db.execute_query(
            "SELECT * FROM organizations WHERE id = ?",
            (organization_id,),
            fetch_one=True
        )
        if row is None:
            raise RecordNotFoundError('organizations', organization_id)
        return Organization.model_validate(row)
