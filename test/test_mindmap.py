# Unit tests for mind map normalisation and derived values
import unittest

from backend.errors import MalformedResponse
from backend.mindmap import (
    average_top_level_importance, count_nodes, flatten_topic_paths, format_importance,
    mind_map_outline, normalize_mind_map, serialize_mind_map, top_level_importances
)
from backend.models import Leaf, MindMap, Node

BIOLOGY = {
    "topics": [
        {
            "topic": "Cell Biology",
            "definition": "Study of cells",
            "weightage": 8,
            "subtopics": [
                "Cell Membrane",
                {"topic": "Cell Division", "subtopics": ["Mitosis", "Meiosis"]},
            ],
        },
        {"topic": "Genetics", "weightage": 5, "subtopics": ["DNA Replication"]},
        {"topic": "Ecology", "weightage": 3, "subtopics": []},
    ]
}


def expected_count(topics):
    return sum(1 + (expected_count(t.children) if isinstance(t, Node) else 0) for t in topics)


class TestNormalizeMindMap(unittest.TestCase):
    def test_builds_tagged_tree(self):
        mind_map = normalize_mind_map(BIOLOGY)
        cells = mind_map.topics[0]
        self.assertIsInstance(cells, Node)
        self.assertEqual(cells.name, "Cell Biology")
        self.assertEqual(cells.definition, "Study of cells")
        self.assertEqual(cells.importance, 8)
        self.assertEqual(cells.children[0], Leaf("Cell Membrane"))
        self.assertEqual(cells.children[1].children, (Leaf("Mitosis"), Leaf("Meiosis")))

    def test_accepts_json_string_with_code_fence(self):
        raw = '```json\n{"topics": [{"topic": "Algebra", "weightage": 7, "subtopics": ["Groups"]}]}\n```'
        mind_map = normalize_mind_map(raw)
        self.assertEqual(mind_map.topics[0].name, "Algebra")
        self.assertEqual(mind_map.topics[0].children, (Leaf("Groups"),))

    def test_accepts_bare_list_and_wrappers(self):
        topics = [{"topic": "Optics", "weightage": 4, "subtopics": []}]
        self.assertEqual(normalize_mind_map(topics), normalize_mind_map({"mindMap": {"topics": topics}}))

    def test_malformed_nodes_are_skipped(self):
        raw = {
            "topics": [
                None,
                {"definition": "no name here"},
                {"topic": "Broken", "subtopics": "not a list"},
                {"topic": "Kept", "weightage": 6, "subtopics": ["ok", None, "  ", 42]},
            ]
        }
        with self.assertLogs("backend.mindmap", level="WARNING"):
            mind_map = normalize_mind_map(raw)
        self.assertEqual(len(mind_map), 1)
        self.assertEqual(mind_map.topics[0].children, (Leaf("ok"),))

    def test_out_of_range_importance_is_clamped(self):
        raw = {"topics": [{"topic": "A", "weightage": 14}, {"topic": "B", "weightage": -2}]}
        with self.assertLogs("backend.mindmap", level="WARNING") as logs:
            mind_map = normalize_mind_map(raw, importance_range=(0, 10))
        self.assertEqual([t.importance for t in mind_map.topics], [10, 0])
        self.assertTrue(any("clamped" in line for line in logs.output))

    def test_importance_coercion(self):
        raw = {"topics": [
            {"topic": "A", "weightage": "7"},
            {"topic": "B", "weightage": 6.6},
            {"topic": "C", "weightage": "high"},
            {"topic": "D", "weightage": True},
            {"topic": "E"},
        ]}
        with self.assertLogs("backend.mindmap", level="WARNING"):
            mind_map = normalize_mind_map(raw, importance_range=(0, 10))
        self.assertEqual([t.importance for t in mind_map.topics], [7, 7, None, None, None])

    def test_null_key_falls_through_to_alternative(self):
        raw = {"topics": [{"topic": None, "name": "Optics", "weightage": None, "importance": 7,
                           "subtopics": None, "children": ["Lenses"]}]}
        optics = normalize_mind_map(raw, importance_range=(0, 10)).topics[0]
        self.assertEqual(optics.name, "Optics")
        self.assertEqual(optics.importance, 7)
        self.assertEqual(optics.children, (Leaf("Lenses"),))

    def test_rejects_payload_without_topics(self):
        with self.assertRaises(MalformedResponse):
            normalize_mind_map("this is not json")
        with self.assertRaises(MalformedResponse):
            normalize_mind_map({"summary": "no topics"})
        with self.assertRaises(MalformedResponse):
            normalize_mind_map(42)

    def test_serialize_round_trip(self):
        mind_map = normalize_mind_map(BIOLOGY)
        data = serialize_mind_map(mind_map)
        self.assertEqual(data["topics"][0]["subtopics"][0], "Cell Membrane")
        self.assertNotIn("weightage", data["topics"][0]["subtopics"][1])
        self.assertEqual(normalize_mind_map(data), mind_map)


class TestDerivedValues(unittest.TestCase):
    def test_count_nodes_counts_every_topic(self):
        mind_map = normalize_mind_map(BIOLOGY)
        # 3 top level + membrane + division + mitosis + meiosis + dna
        self.assertEqual(count_nodes(mind_map), 8)
        self.assertEqual(count_nodes(mind_map), expected_count(mind_map.topics))
        self.assertGreaterEqual(count_nodes(mind_map), len(mind_map))

    def test_count_nodes_skips_null_nodes_in_raw_output(self):
        raw = {"topics": [None, {"topic": "A", "subtopics": ["x", None]}]}
        with self.assertLogs("backend.mindmap", level="WARNING"):
            self.assertEqual(count_nodes(raw), 2)

    def test_count_nodes_empty(self):
        self.assertEqual(count_nodes(MindMap()), 0)
        self.assertEqual(count_nodes(None), 0)

    def test_derived_values_treat_missing_topic_list_as_empty(self):
        with self.assertLogs("backend.mindmap", level="WARNING"):
            self.assertEqual(count_nodes({"topics": None}), 0)
            self.assertEqual(count_nodes({}), 0)
            self.assertEqual(count_nodes({"topics": {"a": 1}}), 0)
            self.assertEqual(average_top_level_importance({}), 0.0)
            self.assertEqual(list(flatten_topic_paths({"topics": None})), [])
            self.assertEqual(top_level_importances({"topics": None}), [])

    def test_average_importance_scenario(self):
        mind_map = normalize_mind_map(BIOLOGY)
        average = average_top_level_importance(mind_map)
        self.assertAlmostEqual(average, 16 / 3)
        self.assertEqual(format_importance(average), "5.3")

    def test_average_ignores_missing_importance(self):
        mind_map = MindMap(topics=(Node("A", importance=4), Node("B"), Leaf("C")))
        self.assertEqual(average_top_level_importance(mind_map), 4.0)
        self.assertEqual(average_top_level_importance(MindMap(topics=(Leaf("C"),))), 0.0)
        self.assertEqual(format_importance(4.0), "4")

    def test_flatten_topic_paths_preorder_and_restartable(self):
        paths = flatten_topic_paths(normalize_mind_map(BIOLOGY))
        expected = [
            "Cell Biology",
            "Cell Biology > Cell Membrane",
            "Cell Biology > Cell Division",
            "Cell Biology > Cell Division > Mitosis",
            "Cell Biology > Cell Division > Meiosis",
            "Genetics",
            "Genetics > DNA Replication",
            "Ecology",
        ]
        self.assertEqual(list(paths), expected)
        self.assertEqual(list(paths), expected)

    def test_flatten_topic_paths_custom_separator(self):
        paths = flatten_topic_paths({"topics": [{"topic": "A", "subtopics": ["B"]}]}, separator="/")
        self.assertEqual(list(paths), ["A", "A/B"])

    def test_top_level_importances_sorted_and_truncated(self):
        mind_map = MindMap(topics=(
            Node("Thermodynamics and Heat", importance=3),
            Node("Optics", importance=9),
            Node("Unscored"),
        ))
        rows = top_level_importances(mind_map)
        self.assertEqual([row["full_name"] for row in rows], ["Optics", "Thermodynamics and Heat"])
        self.assertEqual(rows[1]["name"], "Thermodynami...")

    def test_outline(self):
        outline = mind_map_outline(normalize_mind_map(BIOLOGY))
        self.assertIn("- **Cell Biology** (importance 8): Study of cells", outline)
        self.assertIn("    - Mitosis", outline)


if __name__ == "__main__":
    unittest.main()
