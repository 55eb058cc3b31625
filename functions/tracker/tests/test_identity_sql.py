import unittest

from tracker.errors import UpstreamStoreError
from tracker.identity import SqlIdentityStore


class SqlIdentityStoreTests(unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL client logic.
    """

    def setUp(self):
        self.store = SqlIdentityStore("sqlite+pysqlite:///:memory:")
        self.store.add_user(1, "Ana", "Lopez", "ana@example.com", "admin")
        self.store.add_user(2, "Luis", "Perez", "luis@example.com", "dev")

    def test_list_project_ids(self):
        self.store.link_user(1, "p1")
        self.store.link_user(1, "p2")
        self.store.link_user(2, "p3")
        self.assertEqual(sorted(self.store.list_project_ids(1)), ["p1", "p2"])
        self.assertEqual(self.store.list_project_ids(3), [])

    def test_duplicate_links_are_stored(self):
        self.store.link_user(1, "p1")
        self.store.link_user(1, "p1")
        self.assertEqual(self.store.list_project_ids(1), ["p1", "p1"])

    def test_unlink_removes_every_matching_row(self):
        self.store.link_user(1, "p1")
        self.store.link_user(1, "p1")
        self.store.link_user(1, "p2")
        self.store.unlink_user(1, "p1")
        self.assertEqual(self.store.list_project_ids(1), ["p2"])

    def test_team_members_join(self):
        self.store.link_user(1, "p1")
        self.store.link_user(2, "p1")
        self.store.link_user(2, "p2")

        members = self.store.list_team_members("p1")

        self.assertEqual([member.user_id for member in members], [1, 2])
        self.assertEqual(
            members[1].as_dict(),
            {
                "UserID": 2,
                "username": "Luis",
                "lastname": "Perez",
                "email": "luis@example.com",
                "role": "dev",
            },
        )
        self.assertEqual(self.store.list_team_members("empty"), [])

    def test_get_user_name(self):
        self.assertEqual(self.store.get_user_name(1), ("Ana", "Lopez"))
        self.assertIsNone(self.store.get_user_name(99))

    def test_database_errors_become_upstream_errors(self):
        with self.assertRaises(UpstreamStoreError):
            self.store.add_user(1, "Duplicate")


if __name__ == "__main__":
    unittest.main()
