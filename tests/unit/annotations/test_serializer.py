"""
Unit tests for the canonical annotation representation.

@testCovers annotations_app/lib/serializer.py
@testCovers annotations_app/lib/annotation_service.py:canonical_batch
"""

import json
import shutil
import tempfile
import unittest
from pathlib import Path

from annotations_app.lib.access_levels import AccessLevel, Role
from annotations_app.lib.annotation_service import AnnotationService
from annotations_app.lib.comment_policy import CommentCache
from annotations_app.lib.database import DatabaseManager
from annotations_app.lib.models import Account, Annotation, AnnotationCreate, AuthorInfo, Comment, Document
from annotations_app.lib.repository import OrganizationRepository
from annotations_app.lib.serializer import (
    CanonicalOptions,
    SerializationContext,
    annotation_json,
    canonical,
    canonical_cache_path,
    canonical_url,
    is_cacheable,
)


class TestCanonical(unittest.TestCase):
    """Test canonical() with in-memory inputs."""

    def setUp(self):
        self.document = Document(
            id=5, organization_id=1, account_id=10, slug='budget',
            access=AccessLevel.PUBLIC, comment_access=AccessLevel.PUBLIC, cacheable=True,
        )
        self.note = Annotation(
            id=9, document_id=5, account_id=10, organization_id=1, page_number=3,
            title='Look here', content='<b>numbers</b>',
            access=AccessLevel.EXCLUSIVE, comment_access=AccessLevel.ORGANIZATION,
        )
        self.comments = {9: [
            Comment(id=1, annotation_id=9, commenter_id=10, organization_id=1, text='public'),
            Comment(id=2, annotation_id=9, commenter_id=10, organization_id=1, text='private',
                    access=AccessLevel.PRIVATE),
        ]}

    def context(self, viewer=None):
        return SerializationContext(viewer, {5: self.document}, self.comments)

    def test_base_fields(self):
        """Test the fields present in every representation."""
        data = canonical(self.note, CanonicalOptions(include_comments=False))
        self.assertEqual(data, {
            'id': 9,
            'page': 3,
            'title': 'Look here',
            'content': '<b>numbers</b>',
            'access': 'exclusive',
            'comment_access': int(AccessLevel.ORGANIZATION),
        })

    def test_comments_omitted_when_disabled(self):
        """Test that the comments key is absent when comments are excluded."""
        data = canonical(self.note, CanonicalOptions(include_comments=False), self.context())
        self.assertNotIn('comments', data)

    def test_comments_filtered_for_viewer(self):
        """Test that only comments the viewer can access are included."""
        anonymous = canonical(self.note, CanonicalOptions(), self.context())
        self.assertEqual([c['id'] for c in anonymous['comments']], [1])

        author = canonical(self.note, CanonicalOptions(), self.context(Account(id=10, organization_id=1)))
        self.assertEqual([c['text'] for c in author['comments']], ['public', 'private'])

    def test_comments_included_by_default(self):
        """Test that comments are included when no options are given."""
        data = canonical(self.note, None, self.context())
        self.assertIn('comments', data)

    def test_comment_list_reused_within_request(self):
        """Test that a second call in the same context reuses the filtered list."""
        context = self.context()
        canonical(self.note, CanonicalOptions(), context)
        self.comments[9].append(Comment(id=3, annotation_id=9, text='late'))
        data = canonical(self.note, CanonicalOptions(), context)
        self.assertEqual([c['id'] for c in data['comments']], [1])

    def test_location(self):
        """Test that location is wrapped whenever set, even when empty."""
        self.note.location = '10,20,30,40'
        data = canonical(self.note, CanonicalOptions(include_comments=False))
        self.assertEqual(data['location'], {'image': '10,20,30,40'})

        self.note.location = ''
        data = canonical(self.note, CanonicalOptions(include_comments=False))
        self.assertEqual(data['location'], {'image': ''})

        self.note.location = None
        data = canonical(self.note, CanonicalOptions(include_comments=False))
        self.assertNotIn('location', data)

    def test_urls(self):
        """Test image and document URL options."""
        options = CanonicalOptions(include_comments=False, include_image_url=True, include_document_url=True)
        data = canonical(self.note, options, self.context())
        self.assertEqual(data['image_url'], self.document.page_image_url_template)
        self.assertTrue(data['image_url'].endswith('/documents/5/pages/budget-p{page}-{size}.gif'))
        self.assertTrue(data['published_url'].startswith('https://'))
        self.assertTrue(data['published_url'].endswith('/documents/5-budget.html'))

        self.document.published_url = 'https://news.example.com/story'
        data = canonical(self.note, options, self.context())
        self.assertEqual(data['published_url'], 'https://news.example.com/story')

    def test_cache_of_another_viewer_rejected(self):
        """Test that a comment cache cannot be reused for a different viewer."""
        author = Account(id=10, organization_id=1)
        cache = CommentCache(author)
        with self.assertRaises(ValueError):
            SerializationContext(Account(id=11, organization_id=2), comment_cache=cache)
        with self.assertRaises(ValueError):
            SerializationContext(None, comment_cache=cache)
        with self.assertRaises(ValueError):
            SerializationContext(author, comment_cache=CommentCache(None))

        context = SerializationContext(Account(id=10, organization_id=1), {5: self.document},
                                       self.comments, cache)
        self.assertIs(context.comment_cache, cache)

    def test_missing_document_for_urls(self):
        """Test that URL options need the parent document in the context."""
        with self.assertRaises(LookupError):
            canonical(self.note, CanonicalOptions(include_image_url=True), SerializationContext())

    def test_author_block(self):
        """Test that attribution is merged only once populated."""
        data = canonical(self.note, CanonicalOptions(include_comments=False))
        self.assertNotIn('author', data)

        self.note.author = AuthorInfo(full_name='Ada One', account_id=10, owns_note=True)
        data = canonical(self.note, CanonicalOptions(include_comments=False))
        self.assertEqual(data['author'], 'Ada One')
        self.assertTrue(data['owns_note'])
        self.assertIsNone(data['author_organization'])

    def test_annotation_json(self):
        """Test the JSON encoding with ownership ids."""
        data = json.loads(annotation_json(self.note, CanonicalOptions(include_comments=False)))
        self.assertEqual(data['document_id'], 5)
        self.assertEqual(data['account_id'], 10)
        self.assertEqual(data['organization_id'], 1)
        self.assertEqual(data['access'], 'exclusive')

    def test_cache_helpers(self):
        """Test cacheability, canonical URL and cache path."""
        self.assertFalse(is_cacheable(self.note, self.document))
        self.note.access = AccessLevel.PUBLIC
        self.assertTrue(is_cacheable(self.note, self.document))
        self.document.cacheable = False
        self.assertFalse(is_cacheable(self.note, self.document))

        self.assertTrue(canonical_url(self.note, self.document).endswith('/documents/5-budget.html#document/3'))
        self.assertEqual(canonical_cache_path(self.note), '/documents/5/annotations/9.js')


class TestCanonicalBatch(unittest.TestCase):
    """Test serialization of a batch through the service."""

    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())
        db = DatabaseManager(self.test_dir / "annotations.db")
        self.service = AnnotationService(db)
        organization = OrganizationRepository(db).create_organization('Tribune')
        self.author = self.service.accounts.create_account('Ada', 'One', organization.id, Role.ADMINISTRATOR)
        self.document = self.service.documents.create_document(
            organization.id, self.author.id, slug='memo', access=AccessLevel.PUBLIC
        )
        self.notes = [
            self.service.create_annotation(self.document.id, AnnotationCreate(title=f'n{i}', page_number=i))
            for i in range(1, 4)
        ]
        self.service.comments.create_comment(self.notes[0].id, 'hello', self.author.id, organization.id)
        self.service.comments.create_comment(self.notes[0].id, 'internal', self.author.id, organization.id,
                                             access=AccessLevel.EXCLUSIVE)

    def tearDown(self):
        import gc
        gc.collect()
        shutil.rmtree(self.test_dir)

    def test_batch_for_anonymous(self):
        """Test attribution, URLs and comment filtering for an anonymous viewer."""
        options = CanonicalOptions(include_document_url=True)
        data = self.service.canonical_batch(self.notes, None, options)

        self.assertEqual(len(data), 3)
        self.assertEqual(data[0]['author'], 'Ada One')
        self.assertEqual(data[0]['author_organization'], 'Tribune')
        self.assertFalse(data[0]['owns_note'])
        self.assertEqual([c['text'] for c in data[0]['comments']], ['hello'])
        self.assertEqual(data[1]['comments'], [])
        self.assertIn('published_url', data[2])

    def test_batch_for_author(self):
        """Test that the author sees its own organization's comments."""
        viewer = self.service.get_account(self.author.id)
        cache = CommentCache(viewer)
        data = self.service.canonical_batch(self.notes, viewer, comment_cache=cache)
        self.assertTrue(data[0]['owns_note'])
        self.assertEqual([c['text'] for c in data[0]['comments']], ['hello', 'internal'])
        self.assertTrue(cache.is_cached(self.notes[0]))

    def test_batch_rejects_cache_of_another_viewer(self):
        """Test that one viewer's filtered comments are never served to another."""
        author = self.service.get_account(self.author.id)
        cache = CommentCache(author)
        self.service.canonical_batch(self.notes, author, comment_cache=cache)

        with self.assertRaises(ValueError):
            self.service.canonical_batch(self.notes, None, comment_cache=cache)
        outsider = Account(id=self.author.id + 100, organization_id=None)
        with self.assertRaises(ValueError):
            self.service.canonical_batch(self.notes, outsider, comment_cache=cache)

    def test_batch_without_comments(self):
        data = self.service.canonical_batch(self.notes, None, CanonicalOptions(include_comments=False))
        self.assertTrue(all('comments' not in item for item in data))

    def test_empty_batch(self):
        self.assertEqual(self.service.canonical_batch([], None), [])


if __name__ == '__main__':
    unittest.main()
