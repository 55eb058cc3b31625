import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as google_auth_exceptions

from tracker.documents import FirestoreDocumentStore, InMemoryDocumentStore
from tracker.errors import UpstreamStoreError
from tracker.storage import CosBlobStore, FirebaseBlobStore


class FirestoreDocumentStoreTests(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        self.collection = self.client.collection.return_value
        self.store = FirestoreDocumentStore(self.client, collection="proyectos")

    def test_uses_configured_collection(self):
        self.client.collection.assert_called_once_with("proyectos")

    def test_get_missing_document(self):
        self.collection.document.return_value.get.return_value.exists = False
        self.assertIsNone(self.store.get("p1"))

    def test_get_existing_document(self):
        snapshot = self.collection.document.return_value.get.return_value
        snapshot.exists = True
        snapshot.to_dict.return_value = {"estatus": "Activo"}
        self.assertEqual(self.store.get("p1"), {"estatus": "Activo"})
        self.collection.document.assert_called_with("p1")

    def test_add_returns_generated_id(self):
        doc_ref = MagicMock(id="generated")
        self.collection.add.return_value = (object(), doc_ref)
        self.assertEqual(self.store.add({"a": 1}), "generated")

    def test_update_not_found_becomes_upstream_error(self):
        self.collection.document.return_value.update.side_effect = (
            google_exceptions.NotFound("no document")
        )
        with self.assertRaises(UpstreamStoreError):
            self.store.update("ghost", {"estatus": "x"})

    def test_set_with_merge(self):
        self.store.set("ratings", {"ratings": {"a": 1}}, merge=True)
        self.collection.document.return_value.set.assert_called_once_with(
            {"ratings": {"a": 1}}, merge=True
        )

    def test_batch_update_commits_once(self):
        batch = self.client.batch.return_value
        self.store.batch_update([("a", {"x": 1}), ("b", {"x": 2})])
        self.assertEqual(batch.update.call_count, 2)
        batch.commit.assert_called_once_with()

    def test_batch_failure_becomes_upstream_error(self):
        self.client.batch.return_value.commit.side_effect = (
            google_exceptions.NotFound("no document")
        )
        with self.assertRaises(UpstreamStoreError):
            self.store.batch_update([("ghost", {"x": 1})])

    def test_retry_deadline_becomes_upstream_error(self):
        self.collection.document.return_value.get.side_effect = (
            google_exceptions.RetryError("Deadline exceeded", cause=None)
        )
        with self.assertRaises(UpstreamStoreError):
            self.store.get("p1")

    def test_credentials_failure_becomes_upstream_error(self):
        self.collection.document.return_value.set.side_effect = (
            google_auth_exceptions.RefreshError("token expired")
        )
        with self.assertRaises(UpstreamStoreError):
            self.store.set("ratings", {"ratings": {}}, merge=True)


class InMemoryDocumentStoreTests(unittest.TestCase):
    def test_reads_are_isolated_from_store(self):
        store = InMemoryDocumentStore()
        doc_id = store.add({"EP": [{"id": "1"}]})
        doc = store.get(doc_id)
        doc["EP"].append({"id": "2"})
        self.assertEqual(store.get(doc_id)["EP"], [{"id": "1"}])


class FirebaseBlobStoreTests(unittest.TestCase):
    def test_upload_and_sign(self):
        bucket = MagicMock()
        blob = bucket.blob.return_value
        blob.generate_signed_url.return_value = "https://signed"
        store = FirebaseBlobStore(bucket)
        expires_at = datetime(2100, 12, 31, tzinfo=timezone.utc)

        store.upload_bytes("projects/p/x_a.png", b"data", "image/png")
        url = store.download_url("projects/p/x_a.png", expires_at)

        blob.upload_from_string.assert_called_once_with(b"data", content_type="image/png")
        blob.generate_signed_url.assert_called_once_with(
            expiration=expires_at, method="GET"
        )
        self.assertEqual(url, "https://signed")

    def test_upload_failure_becomes_upstream_error(self):
        bucket = MagicMock()
        bucket.blob.return_value.upload_from_string.side_effect = (
            google_exceptions.Forbidden("denied")
        )
        with self.assertRaises(UpstreamStoreError):
            FirebaseBlobStore(bucket).upload_bytes("p", b"x", None)


class CosBlobStoreTests(unittest.TestCase):
    def _store(self):
        return CosBlobStore(
            bucket="bucket",
            region="ap-guangzhou",
            endpoint="https://cos.example.test",
            access_key_id="id",
            secret_access_key="secret",
        )

    @patch("tracker.storage.boto3")
    def test_upload_is_public_read(self, mock_boto3):
        client = mock_boto3.client.return_value
        self._store().upload_bytes("projects/p/a.png", b"data", "image/png")
        client.put_object.assert_called_once_with(
            Bucket="bucket",
            Key="projects/p/a.png",
            Body=b"data",
            ACL="public-read",
            ContentType="image/png",
        )

    @patch("tracker.storage.boto3")
    def test_download_url_does_not_expire(self, mock_boto3):
        client = mock_boto3.client.return_value
        expires_at = datetime(2100, 12, 31, tzinfo=timezone.utc)

        url = self._store().download_url("projects/p/a b.png", expires_at)

        self.assertEqual(url, "https://bucket.cos.example.test/projects/p/a%20b.png")
        client.generate_presigned_url.assert_not_called()

    @patch("tracker.storage.boto3")
    def test_upload_failure_becomes_upstream_error(self, mock_boto3):
        client = mock_boto3.client.return_value
        client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
        )
        with self.assertRaises(UpstreamStoreError):
            self._store().upload_bytes("k", b"x", "image/png")


if __name__ == "__main__":
    unittest.main()
