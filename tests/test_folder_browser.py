import os
import shutil
import sys
import tempfile
import unittest

import git

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from folder_browser import expand_path, list_folders


class TestFolderBrowser(unittest.TestCase):
    def setUp(self):
        self.root = tempfile.mkdtemp()
        for name in ("zeta", "Alpha", ".hidden", "repo_b", "repo_a"):
            os.makedirs(os.path.join(self.root, name))
        for name in ("repo_b", "repo_a"):
            git.Repo.init(os.path.join(self.root, name)).close()
        with open(os.path.join(self.root, "file.txt"), "w") as f:
            f.write("not a folder")

    def tearDown(self):
        shutil.rmtree(self.root)

    def test_lists_git_repositories_first(self):
        result = list_folders(self.root)

        self.assertEqual(result.current, self.root)
        self.assertEqual(result.parent, os.path.dirname(self.root))
        self.assertEqual([folder.name for folder in result.folders], ["repo_a", "repo_b", "Alpha", "zeta"])
        self.assertEqual([folder.is_git_repo for folder in result.folders], [True, True, False, False])
        self.assertEqual(result.folders[0].path, os.path.join(self.root, "repo_a"))

    def test_missing_directory(self):
        with self.assertRaises(FileNotFoundError):
            list_folders(os.path.join(self.root, "missing"))

    def test_file_is_not_a_directory(self):
        with self.assertRaises(FileNotFoundError):
            list_folders(os.path.join(self.root, "file.txt"))

    def test_expand_path(self):
        home = os.path.expanduser("~")
        self.assertEqual(expand_path(None), home)
        self.assertEqual(expand_path(""), home)
        self.assertEqual(expand_path("~/projects"), os.path.join(home, "projects"))
        self.assertEqual(expand_path("/tmp"), "/tmp")


if __name__ == "__main__":
    unittest.main()
