"""Stateful front end for renderers: compile, collapse and re-layout."""
from __future__ import annotations

from dataclasses import replace
from typing import Optional

from .compiler import compile_graph
from .layout import LayoutConfig, LayoutEngine
from .model import Graph, LayoutResult


class FlowChart:
    """Holds the current Graph and its collapse state.

    Collapse changes do not lay out by themselves; the host calls
    :meth:`layout` once it is ready to redraw.
    """

    def __init__(self, config: Optional[LayoutConfig] = None) -> None:
        self.engine = LayoutEngine(config)
        self.graph = Graph()

    def recompile(self, text: str) -> Graph:
        """Replace the Graph, keeping the collapse state of surviving node ids."""
        self.graph = compile_graph(text, previous=self.graph)
        return self.graph

    def render(self, text: str) -> LayoutResult:
        self.recompile(text)
        return self.layout()

    def layout(self) -> LayoutResult:
        return self.engine.layout(self.graph)

    def set_collapsed(self, node_id: str, collapsed: bool) -> None:
        node = self.graph.nodes[node_id]
        if node.collapsed == collapsed:
            return
        nodes = dict(self.graph.nodes)
        nodes[node_id] = replace(node, collapsed=collapsed)
        self.graph = replace(self.graph, nodes=nodes)

    def toggle_collapse(self, node_id: str) -> bool:
        """Flip the collapse flag of a node with children and return the new state.

        Leaf nodes have nothing to hide and keep their current state.
        """
        node = self.graph.nodes[node_id]
        if not node.has_children:
            return node.collapsed
        self.set_collapsed(node_id, not node.collapsed)
        return not node.collapsed
