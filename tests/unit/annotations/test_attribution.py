"""
Unit tests for batch author attribution.

@testCovers annotations_app/lib/attribution.py
@testCovers annotations_app/lib/repository/account_repository.py:find_authors
"""

import shutil
import tempfile
import unittest
from pathlib import Path

from annotations_app.lib.access_levels import AccessLevel, Role
from annotations_app.lib.attribution import populate_author_info
from annotations_app.lib.database import DatabaseManager
from annotations_app.lib.models import Account, Annotation
from annotations_app.lib.repository import AccountRepository, OrganizationRepository


def make_note(id, account_id):
    return Annotation(
        id=id, document_id=1, account_id=account_id, organization_id=1,
        page_number=1, title='Note', access=AccessLevel.PUBLIC, comment_access=AccessLevel.PUBLIC,
    )


class RecordingLookup:
    """Author lookup that records every bulk read."""

    def __init__(self, authors):
        self.authors = authors
        self.calls = []

    def __call__(self, account_ids):
        self.calls.append(set(account_ids))
        return {i: self.authors[i] for i in account_ids if i in self.authors}


class TestPopulateAuthorInfo(unittest.TestCase):
    """Test attribution with an in-memory author lookup."""

    def setUp(self):
        self.lookup = RecordingLookup({
            10: {'first_name': 'Ada', 'last_name': 'Admin', 'role': int(Role.ADMINISTRATOR),
                 'organization_name': 'Tribune'},
            11: {'first_name': 'Rae', 'last_name': 'Reviewer', 'role': int(Role.REVIEWER),
                 'organization_name': 'Tribune'},
            12: {'first_name': 'Fin', 'last_name': 'Freelancer', 'role': int(Role.FREELANCER),
                 'organization_name': 'Gazette'},
        })

    def test_empty_batch_is_noop(self):
        """Test that no lookup happens for an empty batch."""
        populate_author_info([], None, self.lookup)
        self.assertEqual(self.lookup.calls, [])

    def test_single_lookup_for_batch(self):
        """Test that one bulk read covers every distinct author."""
        notes = [make_note(i, 10 + (i % 3)) for i in range(30)]
        populate_author_info(notes, None, self.lookup, unattributed_name='Unattributed')
        self.assertEqual(self.lookup.calls, [{10, 11, 12}])
        self.assertTrue(all(note.author is not None for note in notes))

    def test_organization_name_redacted_by_role(self):
        """Test that only privileged authors disclose their organization."""
        notes = [make_note(1, 10), make_note(2, 11), make_note(3, 12)]
        populate_author_info(notes, None, self.lookup, unattributed_name='Unattributed')

        self.assertEqual(notes[0].author.full_name, 'Ada Admin')
        self.assertEqual(notes[0].author.organization_name, 'Tribune')
        self.assertEqual(notes[1].author.full_name, 'Rae Reviewer')
        self.assertIsNone(notes[1].author.organization_name)
        self.assertEqual(notes[2].author.organization_name, 'Gazette')

    def test_missing_author_unattributed(self):
        """Test the placeholder for authors without a record."""
        notes = [make_note(1, 99)]
        populate_author_info(notes, None, self.lookup, unattributed_name='Unattributed')
        self.assertEqual(notes[0].author.full_name, 'Unattributed')
        self.assertEqual(notes[0].author.account_id, 99)
        self.assertIsNone(notes[0].author.organization_name)

    def test_owns_note_flag(self):
        """Test that owns_note marks the viewer's own annotations."""
        notes = [make_note(1, 10), make_note(2, 11)]
        populate_author_info(notes, Account(id=10, organization_id=1), self.lookup)
        self.assertTrue(notes[0].author.owns_note)
        self.assertFalse(notes[1].author.owns_note)

        populate_author_info(notes, None, self.lookup)
        self.assertFalse(notes[0].author.owns_note)

    def test_default_placeholder_from_settings(self):
        notes = [make_note(1, 99)]
        populate_author_info(notes, None, self.lookup)
        self.assertEqual(notes[0].author.full_name, 'Unattributed')


class TestAccountRepositoryLookup(unittest.TestCase):
    """Test attribution against the SQLite account repository."""

    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        db = DatabaseManager(self.test_dir / "annotations.db")
        organization = OrganizationRepository(db).create_organization('Tribune')
        self.accounts = AccountRepository(db)
        self.contributor = self.accounts.create_account('Con', 'Tributor', organization.id, Role.CONTRIBUTOR)
        self.reviewer = self.accounts.create_account('Rev', 'Iewer', organization.id, Role.REVIEWER)
        self.loner = self.accounts.create_account('Lo', 'Ner', None, Role.FREELANCER)

    def tearDown(self):
        import gc
        gc.collect()
        shutil.rmtree(self.test_dir)

    def test_find_authors(self):
        """Test the bulk author query including organization names."""
        authors = self.accounts.find_authors([self.contributor.id, self.reviewer.id, self.contributor.id, 999])
        self.assertEqual(set(authors), {self.contributor.id, self.reviewer.id})
        self.assertEqual(authors[self.contributor.id]['organization_name'], 'Tribune')
        self.assertEqual(self.accounts.find_authors([]), {})

    def test_populate_with_repository(self):
        """Test attribution using the repository as lookup."""
        notes = [make_note(1, self.contributor.id), make_note(2, self.reviewer.id),
                 make_note(3, self.loner.id), make_note(4, 999)]
        populate_author_info(notes, self.contributor, self.accounts, unattributed_name='Unattributed')

        self.assertEqual(notes[0].author.full_name, 'Con Tributor')
        self.assertEqual(notes[0].author.organization_name, 'Tribune')
        self.assertTrue(notes[0].author.owns_note)
        self.assertIsNone(notes[1].author.organization_name)
        self.assertEqual(notes[2].author.full_name, 'Lo Ner')
        self.assertIsNone(notes[2].author.organization_name)
        self.assertEqual(notes[3].author.full_name, 'Unattributed')


if __name__ == '__main__':
    unittest.main()
