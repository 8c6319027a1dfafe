import json
import os
import shutil
import sys
import tempfile
import unittest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from repo_registry import DEFAULT_ORDER, Repo, RepoRegistry, RepoRegistryError


class TestRepoRegistry(unittest.TestCase):
    def setUp(self):
        self.config_dir = tempfile.mkdtemp()
        self.repos_file = os.path.join(self.config_dir, "repos.json")
        self.valid_paths = set()
        self.registry = RepoRegistry(self.repos_file, validator=lambda path: path in self.valid_paths)

    def tearDown(self):
        shutil.rmtree(self.config_dir)

    def add(self, name):
        path = os.path.join(self.config_dir, name)
        self.valid_paths.add(path)
        return self.registry.add_repo(path)

    def test_empty_registry(self):
        self.assertEqual(self.registry.get_repos(), [])

    def test_add_repo_persists(self):
        repo = self.add("project")

        self.assertEqual(repo.name, "project")
        self.assertFalse(repo.favorite)
        self.assertTrue(repo.added_at)
        with open(self.repos_file) as f:
            saved = json.load(f)
        self.assertEqual(saved[0]["id"], repo.id)
        self.assertEqual(saved[0]["path"], repo.path)
        self.assertEqual(self.registry.get_repo_by_id(repo.id), repo)

    def test_add_repo_validation(self):
        with self.assertRaisesRegex(RepoRegistryError, "Path is required"):
            self.registry.add_repo("  ")
        with self.assertRaisesRegex(RepoRegistryError, "Not a valid git repository"):
            self.registry.add_repo(os.path.join(self.config_dir, "plain"))

        self.add("project")
        with self.assertRaisesRegex(RepoRegistryError, "Repository already added"):
            self.registry.add_repo(os.path.join(self.config_dir, "project"))

    def test_remove_repo(self):
        first = self.add("one")
        second = self.add("two")

        self.registry.remove_repo(first.id)

        self.assertEqual([repo.id for repo in self.registry.get_repos()], [second.id])
        self.assertIsNone(self.registry.get_repo_by_id(first.id))

    def test_toggle_favorite(self):
        repo = self.add("project")

        self.assertTrue(self.registry.toggle_favorite(repo.id).favorite)
        self.assertTrue(self.registry.get_repo_by_id(repo.id).favorite)
        self.assertFalse(self.registry.toggle_favorite(repo.id).favorite)
        self.assertIsNone(self.registry.toggle_favorite("unknown"))

    def test_sorted_repos_favorites_first_then_order(self):
        a = self.add("a")
        b = self.add("b")
        c = self.add("c")
        self.registry.reorder_repos([c.id, "unknown", a.id])
        self.registry.toggle_favorite(b.id)

        sorted_ids = [repo.id for repo in self.registry.get_sorted_repos()]

        self.assertEqual(sorted_ids, [b.id, c.id, a.id])
        orders = {repo.id: repo.order for repo in self.registry.get_repos()}
        self.assertEqual(orders, {a.id: 2, b.id: None, c.id: 0})

    def test_repos_without_order_keep_insertion_order_last(self):
        a = self.add("a")
        b = self.add("b")
        c = self.add("c")
        self.registry.reorder_repos([c.id])

        self.assertEqual([repo.id for repo in self.registry.get_sorted_repos()], [c.id, a.id, b.id])

    def test_corrupt_file_reads_as_empty(self):
        with open(self.repos_file, "w") as f:
            f.write("{not json")
        with self.assertLogs(level="ERROR"):
            self.assertEqual(self.registry.get_repos(), [])

    def test_repo_from_dict_accepts_camel_case(self):
        repo = Repo.from_dict({"id": "1", "path": "/work/site", "addedAt": "2024-01-01T00:00:00Z", "order": 3})
        self.assertEqual(repo.name, "site")
        self.assertEqual(repo.added_at, "2024-01-01T00:00:00Z")
        self.assertEqual(repo.order, 3)
        self.assertLess(repo.order, DEFAULT_ORDER)


if __name__ == "__main__":
    unittest.main()
