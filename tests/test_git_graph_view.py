import os
import sys
import unittest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))
from commit_detail_view import CommitDetailView
from git_graph_data import CommitRecord
from git_graph_items import MAX_BRANCH_LABELS, ReferenceLabel, lane_color
from git_graph_layout import ROW_HEIGHT, calculate_graph_layout
from git_graph_view import GitGraphView
from git_manager import CommitDiff, DiffFileStat

app = QApplication.instance() or QApplication(sys.argv)


def make_records():
    return [
        CommitRecord(
            hash="m" * 40,
            parents=("p" * 40, "f" * 40),
            short_hash="mmmmmmm",
            message="Merge feature",
            author="Alice",
            date="1 hour ago",
            branches=("main", "release", "hotfix"),
            tags=("v1.0",),
            is_head=True,
        ),
        CommitRecord(hash="p" * 40, parents=("r" * 40,), short_hash="ppppppp", message="Main work"),
        CommitRecord(hash="f" * 40, parents=("r" * 40,), short_hash="fffffff", message="Feature <b>work</b>"),
        CommitRecord(hash="r" * 40, parents=("x" * 40,), short_hash="rrrrrrr", message="Root of window"),
    ]


class TestGitGraphView(unittest.TestCase):
    def setUp(self):
        self.view = GitGraphView()
        self.records = make_records()
        self.layout = calculate_graph_layout(self.records)

    def tearDown(self):
        self.view.deleteLater()

    def test_populate_creates_items_for_layout(self):
        self.view.populate_graph(self.records, self.layout)

        self.assertEqual(set(self.view.commit_items), {record.hash for record in self.records})
        self.assertEqual(len(self.view.edge_items), len(self.layout.edges))
        head_item = self.view.commit_items["m" * 40]
        self.assertEqual((head_item.pos().x(), head_item.pos().y()), (self.layout.nodes[0].x, self.layout.nodes[0].y))
        feature_item = self.view.commit_items["f" * 40]
        self.assertEqual(feature_item.pen().color(), lane_color(self.layout.nodes[2].color_index))
        self.assertGreaterEqual(self.view.scene.sceneRect().width(), self.layout.width)
        self.assertEqual(self.view.scene.sceneRect().height(), self.layout.height)

    def test_reference_labels_are_capped(self):
        self.view.populate_graph(self.records, self.layout)

        labels = [item.text for item in self.view.scene.items() if isinstance(item, ReferenceLabel)]
        # two branches, "+1" and one tag for the head commit
        self.assertEqual(sorted(labels), sorted(["main", "release", "+1", "v1.0"]))
        self.assertEqual(MAX_BRANCH_LABELS, 2)

    def test_terminus_edge_is_dashed(self):
        self.view.populate_graph(self.records, self.layout)
        terminus = [item for item in self.view.edge_items if item.edge.is_terminus]
        self.assertEqual(len(terminus), 1)

    def test_record_at_row(self):
        self.view.populate_graph(self.records, self.layout)

        self.assertEqual(self.view.record_at(ROW_HEIGHT * 2 + 1).hash, "f" * 40)
        self.assertIsNone(self.view.record_at(-1))
        self.assertIsNone(self.view.record_at(ROW_HEIGHT * 10))

    def test_select_commit(self):
        self.view.populate_graph(self.records, self.layout)
        self.view.select_commit("p" * 40)
        self.assertTrue(self.view.commit_items["p" * 40].isSelected())

    def test_clear_graph(self):
        self.view.populate_graph(self.records, self.layout)
        self.view.clear_graph()

        self.assertEqual(self.view.commit_items, {})
        self.assertEqual(self.view.edge_items, [])
        self.assertEqual(len(self.view.scene.items()), 0)
        self.assertIsNone(self.view.record_at(1))

    def test_populate_with_no_commits(self):
        self.view.populate_graph([], calculate_graph_layout([]))
        self.assertEqual(len(self.view.scene.items()), 0)


class TestCommitDetailView(unittest.TestCase):
    def setUp(self):
        self.view = CommitDetailView()
        self.commit = make_records()[0]

    def tearDown(self):
        self.view.deleteLater()

    def test_show_commit_and_diff(self):
        self.view.show_commit(self.commit)
        self.assertIn("Merge feature", self.view.header_view.toPlainText())

        diff = CommitDiff(
            files=[DiffFileStat(path="a.txt", additions=2, deletions=1, status="M")],
            diff="diff --git a/a.txt b/a.txt\n--- a/a.txt\n+++ b/a.txt\n@@ -1 +1,2 @@\n-old\n+new\n+more\n",
        )
        self.view.show_diff(diff)

        self.assertEqual(self.view.file_tree.topLevelItemCount(), 1)
        self.assertEqual(self.view.status_label.text(), "1 files changed, +2 -1")
        self.assertIn("+more", self.view.diff_view.toPlainText())

    def test_branch_list_expands(self):
        self.view.show_commit(self.commit)
        header = self.view.header_view
        self.assertNotIn("more_branches", header.branch_text())

        many = CommitRecord(hash="a" * 40, branches=("b1", "b2", "b3", "b4", "b5"))
        header.show_commit(many)
        self.assertIn("(+2 more)", header.branch_text())
        header.branches_expanded = True
        self.assertIn("(-2 less)", header.branch_text())

    def test_clear(self):
        self.view.show_commit(self.commit)
        self.view.clear()
        self.assertIsNone(self.view.current_diff)
        self.assertEqual(self.view.header_view.toPlainText(), "")


if __name__ == "__main__":
    unittest.main()
