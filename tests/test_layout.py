from __future__ import annotations

import sys
import unittest
from dataclasses import replace
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from flowgraph.compiler import compile_graph
from flowgraph.layout import LayoutConfig, LayoutEngine, layout_graph, measure_nodes, wrap_label
from flowgraph.model import CurveKind


class WrapLabelTests(unittest.TestCase):
    def test_greedy_wrap_at_character_budget(self) -> None:
        lines = wrap_label("The quick brown fox jumps over the lazy dog", 20)
        self.assertEqual(lines, ["The quick brown fox", "jumps over the lazy", "dog"])

    def test_long_word_keeps_its_own_line(self) -> None:
        self.assertEqual(wrap_label("a supercalifragilistic b", 5), ["a", "supercalifragilistic", "b"])

    def test_empty_label_has_one_empty_line(self) -> None:
        self.assertEqual(wrap_label("", 20), [""])

    def test_spacing_inside_label_is_kept(self) -> None:
        self.assertEqual(wrap_label(" Start  here ", 20), [" Start  here "])
        self.assertEqual(wrap_label("alpha  beta", 6), ["alpha ", "beta"])


class MeasureNodesTests(unittest.TestCase):
    def test_box_is_driven_by_widest_label_and_floored(self) -> None:
        graph = compile_graph("A[The quick brown fox jumps over the lazy dog] --> B")
        metrics = measure_nodes(graph, LayoutConfig())
        self.assertEqual(metrics.width, 19 * 8 + 40)
        self.assertEqual(metrics.height, 3 * 20 + 40)
        self.assertEqual(metrics.lines["B"], ("B",))

    def test_small_labels_use_configured_minimum(self) -> None:
        graph = compile_graph("A --> B")
        metrics = measure_nodes(graph, LayoutConfig(node_width=200, node_height=90))
        self.assertEqual((metrics.width, metrics.height), (200, 90))

    def test_font_measurement_uses_pillow(self) -> None:
        graph = compile_graph("A[" + "x" * 60 + "]")
        metrics = measure_nodes(graph, LayoutConfig(font_size=14, max_chars_per_line=100))
        self.assertGreater(metrics.width, 140)


class LayoutEngineTests(unittest.TestCase):
    def test_scenario_levels_and_positions(self) -> None:
        result = layout_graph(compile_graph("graph TD\nA-->B\nA-->C\nB-->D"))
        self.assertEqual(result.root, "A")
        levels = {node_id: node.level for node_id, node in result.nodes.items()}
        self.assertEqual(levels, {"A": 0, "B": 1, "C": 1, "D": 2})
        self.assertEqual(result.levels, (("A",), ("B", "C"), ("D",)))

        self.assertEqual((result.node_width, result.node_height), (140, 60))
        self.assertEqual(result.level_separation, 140)
        self.assertEqual(result.sibling_separation, 180)
        self.assertEqual((result.nodes["A"].x, result.nodes["A"].y), (0, 0))
        self.assertEqual((result.nodes["B"].x, result.nodes["B"].y), (-90, 140))
        self.assertEqual((result.nodes["C"].x, result.nodes["C"].y), (90, 140))
        self.assertEqual((result.nodes["D"].x, result.nodes["D"].y), (0, 280))

    def test_vertical_edge_anchors_and_bezier(self) -> None:
        result = layout_graph(compile_graph("graph TD\nA-->B\nA-->C"))
        edge = result.edges[0]
        self.assertTrue(edge.visible)
        self.assertEqual(edge.start, (0, 30))
        self.assertEqual(edge.end, (-90, 110))
        self.assertIs(edge.curve, CurveKind.BEZIER)
        self.assertEqual(edge.path.d, "M 0 30 C 0 70 -90 70 -90 110")

    def test_children_are_symmetric_about_root(self) -> None:
        for count in (1, 2, 3, 4, 5):
            with self.subTest(count=count):
                text = "\n".join(f"R --> C{i}" for i in range(count))
                result = layout_graph(compile_graph(text))
                offsets = [result.nodes[f"C{i}"].x - result.nodes["R"].x for i in range(count)]
                self.assertAlmostEqual(sum(offsets), 0.0)
                self.assertEqual(sorted(offsets), offsets)

    def test_horizontal_directions_swap_axes(self) -> None:
        result = layout_graph(compile_graph("graph LR\nA-->B\nA-->C"))
        self.assertEqual(result.level_separation, 140 + 80)
        self.assertEqual(result.sibling_separation, 60 + 40)
        self.assertEqual((result.nodes["B"].x, result.nodes["B"].y), (220, -50))
        self.assertEqual((result.nodes["C"].x, result.nodes["C"].y), (220, 50))
        edge = result.edges[0]
        self.assertEqual(edge.start, (70, 0))
        self.assertEqual(edge.end, (150, -50))

    def test_every_direction_picks_its_axis_without_mirroring(self) -> None:
        vertical = {"B": (-90, 140), "C": (90, 140), "start": (0, 30), "end": (-90, 110)}
        horizontal = {"B": (220, -50), "C": (220, 50), "start": (70, 0), "end": (150, -50)}
        cases = {"TD": vertical, "TB": vertical, "BT": vertical, "LR": horizontal, "RL": horizontal}
        for direction, expected in cases.items():
            with self.subTest(direction=direction):
                result = layout_graph(compile_graph(f"graph {direction}\nA-->B\nA-->C"))
                self.assertEqual(result.direction.value, direction)
                self.assertEqual((result.nodes["A"].x, result.nodes["A"].y), (0, 0))
                self.assertEqual((result.nodes["B"].x, result.nodes["B"].y), expected["B"])
                self.assertEqual((result.nodes["C"].x, result.nodes["C"].y), expected["C"])
                edge = result.edges[0]
                self.assertEqual(edge.start, expected["start"])
                self.assertEqual(edge.end, expected["end"])

    def test_first_arrival_wins_for_reconvergent_paths(self) -> None:
        result = layout_graph(compile_graph("A --> B\nB --> C\nC --> D\nA --> D"))
        self.assertEqual(result.nodes["D"].level, 1)
        self.assertEqual(result.level_of("C"), 2)
        self.assertEqual(result.levels, (("A",), ("B", "D"), ("C",)))

    def test_collapse_hides_only_exclusive_subtree(self) -> None:
        graph = compile_graph("A --> B\nA --> C\nB --> D\nB --> E\nC --> E")
        result = layout_graph(graph, collapsed={"B"})
        self.assertEqual(set(result.visible_node_ids()), {"A", "B", "C", "E"})
        self.assertFalse(result.nodes["D"].visible)
        self.assertIsNone(result.nodes["D"].level)
        self.assertTrue(result.nodes["B"].collapsed)
        visible_edges = {(e.source, e.target) for e in result.visible_edges()}
        self.assertEqual(visible_edges, {("A", "B"), ("A", "C"), ("B", "E"), ("C", "E")})
        hidden = [e for e in result.edges if not e.visible]
        self.assertTrue(all(e.path is None and e.start is None for e in hidden))

    def test_collapsed_defaults_to_graph_flags(self) -> None:
        graph = compile_graph("A --> B\nB --> C")
        nodes = dict(graph.nodes)
        nodes["B"] = replace(nodes["B"], collapsed=True)
        graph = replace(graph, nodes=nodes)
        self.assertEqual(layout_graph(graph).visible_node_ids(), ["A", "B"])
        self.assertEqual(layout_graph(graph, collapsed=()).visible_node_ids(), ["A", "B", "C"])

    def test_layout_does_not_mutate_graph(self) -> None:
        graph = compile_graph("A --> B\nB --> C")
        before = graph.to_dict()
        engine = LayoutEngine()
        engine.layout(graph, collapsed={"A"})
        engine.layout(graph)
        self.assertEqual(graph.to_dict(), before)

    def test_unreachable_nodes_stay_hidden(self) -> None:
        result = layout_graph(compile_graph("A --> B\nC --> A"))
        self.assertEqual(result.root, "C")
        self.assertEqual(result.visible_node_ids(), ["A", "B", "C"])
        result = layout_graph(compile_graph("A --> B\nX --> Y"))
        self.assertEqual(set(result.visible_node_ids()), {"A", "B"})

    def test_empty_graph_gives_empty_result(self) -> None:
        result = layout_graph(compile_graph(""))
        self.assertIsNone(result.root)
        self.assertEqual(result.nodes, {})
        self.assertEqual(result.edges, ())
        self.assertEqual(result.levels, ())
        self.assertEqual(result.bounds(), (0.0, 0.0, 0.0, 0.0))

    def test_explicit_separations_override_measured_box(self) -> None:
        config = LayoutConfig(level_separation=100, sibling_separation=50)
        result = layout_graph(compile_graph("A-->B\nA-->C"), config=config)
        self.assertEqual(result.nodes["B"].y, 100)
        self.assertEqual((result.nodes["B"].x, result.nodes["C"].x), (-25, 25))

    def test_link_style_curve_overrides_front_matter(self) -> None:
        text = "---\ncurve: bezier\n---\ngraph TD\nA-->B\nA-->C\nlinkStyle 0 curve:linear"
        result = layout_graph(compile_graph(text))
        self.assertIs(result.edges[0].curve, CurveKind.LINEAR)
        self.assertIs(result.edges[1].curve, CurveKind.BEZIER)
        self.assertTrue(result.edges[0].path.d.startswith("M 0 30 L "))

    def test_front_matter_curve_applies_to_all_edges(self) -> None:
        text = "---\ncurve: step\n---\nA-->B\nB-->C"
        result = layout_graph(compile_graph(text))
        self.assertEqual({e.curve for e in result.edges}, {CurveKind.STEP})

    def test_node_styles_are_resolved_into_layout(self) -> None:
        result = layout_graph(compile_graph("A-->B\nstyle B fill:#abc"))
        self.assertIsNone(result.nodes["A"].style)
        self.assertEqual(result.nodes["B"].style["fill"], "#abc")

    def test_bounds_cover_visible_boxes(self) -> None:
        result = layout_graph(compile_graph("A-->B\nA-->C"))
        self.assertEqual(result.bounds(), (-160, -30, 160, 170))


if __name__ == "__main__":
    unittest.main()
