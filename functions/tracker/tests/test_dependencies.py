import unittest
from datetime import timezone
from unittest.mock import patch

from tracker import dependencies
from tracker.config import Settings
from tracker.documents import InMemoryDocumentStore
from tracker.errors import ValidationError
from tracker.identity import InMemoryIdentityStore, SqlIdentityStore
from tracker.storage import InMemoryBlobStore


class DependencyWiringTests(unittest.TestCase):
    def setUp(self):
        dependencies._identity_store = None
        dependencies._document_store = None
        dependencies._blob_store = None

    tearDown = setUp

    @patch("tracker.dependencies.get_settings")
    def test_in_memory_backends(self, mock_settings):
        mock_settings.return_value = Settings(
            use_in_memory_backends=True, database_url="sqlite+pysqlite:///:memory:"
        )
        self.assertIsInstance(dependencies.get_identity_store(), InMemoryIdentityStore)
        self.assertIsInstance(dependencies.get_document_store(), InMemoryDocumentStore)
        self.assertIsInstance(dependencies.get_blob_store(), InMemoryBlobStore)

    @patch("tracker.dependencies.get_settings")
    def test_stores_are_singletons(self, mock_settings):
        mock_settings.return_value = Settings(use_in_memory_backends=True)
        self.assertIs(
            dependencies.get_document_store(), dependencies.get_document_store()
        )

    @patch("tracker.dependencies.get_settings")
    def test_database_url_selects_sql_store(self, mock_settings):
        mock_settings.return_value = Settings(
            use_in_memory_backends=False, database_url="sqlite+pysqlite:///:memory:"
        )
        self.assertIsInstance(dependencies.get_identity_store(), SqlIdentityStore)

    def test_acting_user_required(self):
        with self.assertRaises(ValidationError):
            dependencies.get_acting_user_id(None)
        self.assertEqual(dependencies.get_acting_user_id(7), 7)


class SettingsTests(unittest.TestCase):
    def test_image_expiry_defaults_far_future_utc(self):
        settings = Settings()
        self.assertEqual(settings.image_url_expires_at.year, 2100)
        self.assertEqual(settings.image_url_expires_at.tzinfo, timezone.utc)

    def test_naive_expiry_is_utc(self):
        settings = Settings(image_url_expires_at="2099-01-01T00:00:00")
        self.assertEqual(settings.image_url_expires_at.tzinfo, timezone.utc)

    def test_default_collection_names(self):
        settings = Settings()
        self.assertEqual(settings.projects_collection, "proyectos")
        self.assertEqual(settings.ratings_document_id, "ratings")


if __name__ == "__main__":
    unittest.main()
