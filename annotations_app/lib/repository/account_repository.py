"""
Account repository.

get_account() returns an Account with its project reach resolved, ready to
be used as a viewer by the access policies. find_authors() is the single
bulk read behind author attribution.
"""

from typing import Iterable, Optional

from ..access_levels import Role
from ..database import DatabaseManager
from ..models import Account
from .base import RecordNotFoundError, id_placeholders
from .project_repository import ProjectRepository


class AccountRepository:
    """Account data access."""

    def __init__(self, db_manager: DatabaseManager, logger=None):
        self.db = db_manager
        self.logger = logger
        self.projects = ProjectRepository(db_manager, logger)

    def create_account(
        self,
        first_name: str,
        last_name: str,
        organization_id: Optional[int] = None,
        role: Role = Role.CONTRIBUTOR,
        email: Optional[str] = None
    ) -> Account:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO accounts (organization_id, first_name, last_name, email, role)
                VALUES (?, ?, ?, ?, ?)
                """,
                (organization_id, first_name, last_name, email, int(role))
            )
            account_id = cursor.lastrowid

        if self.logger:
            self.logger.info(f"Created account {account_id} in organization {organization_id}")
        return Account(
            id=account_id,
            organization_id=organization_id,
            first_name=first_name,
            last_name=last_name,
            email=email,
            role=role
        )

    def get_account(self, account_id: int) -> Account:
        """
        Load an account together with its project reach.

        Issues three reads: the account row, its accessible projects, and the
        documents of those projects.

        Raises:
            RecordNotFoundError: If the account does not exist
        """
        row = self.db.execute_query(
            "SELECT * FROM accounts WHERE id = ?", (account_id,), fetch_one=True
        )
        if row is None:
            raise RecordNotFoundError('accounts', account_id)

        project_ids = self.projects.accessible_project_ids(account_id)
        row['accessible_project_ids'] = project_ids
        row['shared_document_ids'] = self.projects.document_ids_for_projects(project_ids)
        return Account.model_validate(row)

    def find_authors(self, account_ids: Iterable[int]) -> dict[int, dict]:
        """
        Bulk lookup of author display data.

        Args:
            account_ids: Author account ids (duplicates allowed)

        Returns:
            Mapping of account id to a dict with first_name, last_name, role
            and organization_name; unknown ids are absent
        """
        placeholders, params = id_placeholders(account_ids)
        if not params:
            return {}
        rows = self.db.execute_query(
            f"""
            SELECT accounts.id, accounts.first_name, accounts.last_name,
                   accounts.role, organizations.name AS organization_name
            FROM accounts
            LEFT JOIN organizations ON organizations.id = accounts.organization_id
            WHERE accounts.id IN ({placeholders})
            """,
            params
        )
        return {row['id']: row for row in rows}
