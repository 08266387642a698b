"""Generic directed graph used for the project dependency graph.

An edge ``A -> B`` means "A depends on B".  Nodes are identified by their
``id``; edges by their ordered ``(source, target)`` pair.  Both endpoints of
an edge keep it in their own adjacency list, so one-hop queries never scan
the whole graph.
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, overload

if TYPE_CHECKING:
    from dotrepo.models.project import Project


class CycleError(ValueError):
    """Raised when a topological order is requested for a cyclic graph."""

    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__(f"Dependency cycle detected: {' -> '.join(cycle)}")


# ---------------------------------------------------------------------------
# Nodes and edges
# ---------------------------------------------------------------------------


class GraphNode:
    def __init__(self, id: str, value: Project | None = None) -> None:  # noqa: A002
        self.id = id
        self.value = value
        self.edges: list[GraphEdge] = []

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphNode):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"GraphNode({self.id!r})"

    def has_edge(self, edge: GraphEdge) -> bool:
        return edge in self.edges

    def add_edge(self, edge: GraphEdge) -> None:
        """Record an edge this node participates in.  No-op if already recorded."""
        if not self.has_edge(edge):
            self.edges.append(edge)

    def dependencies(self) -> list[GraphNode]:
        """Nodes this node points to."""
        found: dict[str, GraphNode] = {}
        for edge in self.edges:
            if edge.source == self:
                found.setdefault(edge.target.id, edge.target)
        return list(found.values())

    def dependees(self) -> list[GraphNode]:
        """Nodes pointing to this node."""
        found: dict[str, GraphNode] = {}
        for edge in self.edges:
            if edge.target == self:
                found.setdefault(edge.source.id, edge.source)
        return list(found.values())

    def neighbors(self) -> list[GraphNode]:
        """Nodes connected to this node in either direction."""
        found: dict[str, GraphNode] = {}
        for edge in self.edges:
            other = edge.target if edge.source == self else edge.source
            found.setdefault(other.id, other)
        return list(found.values())

    def transitive_dependencies(self) -> list[GraphNode]:
        """Every node reachable through one or more dependency edges.

        Breadth-first, so nearer dependencies come first.  Cycles are
        tolerated: a visited node is never expanded twice.  The node itself
        is only included when it sits on a cycle.
        """
        result: list[GraphNode] = []
        visited: set[str] = set()
        queue = deque(self.dependencies())
        while queue:
            node = queue.popleft()
            if node.id in visited:
                continue
            visited.add(node.id)
            result.append(node)
            queue.extend(node.dependencies())
        return result


class GraphEdge:
    def __init__(self, source: GraphNode, target: GraphNode, value: str | None = None) -> None:
        self.source = source
        self.target = target
        self.value = value

    @property
    def key(self) -> tuple[str, str]:
        return self.source.id, self.target.id

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GraphEdge):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"GraphEdge({self.source.id!r} -> {self.target.id!r})"


# ---------------------------------------------------------------------------
# Graph
# ---------------------------------------------------------------------------


class Graph:
    def __init__(self) -> None:
        self.nodes: dict[str, GraphNode] = {}
        self.edges: list[GraphEdge] = []
        self._edge_index: dict[tuple[str, str], GraphEdge] = {}

    # -- Mutation --------------------------------------------------------------

    def add_node(self, id: str, value: Project | None = None) -> GraphNode:  # noqa: A002
        """Add a node.  If one with ``id`` exists it is returned unchanged."""
        node = self.nodes.get(id)
        if node is None:
            node = GraphNode(id, value)
            self.nodes[id] = node
        return node

    def add_edge(self, source: str, target: str, value: str | None = None) -> GraphEdge:
        """Add an edge, creating missing endpoints.  Returns the existing edge if present."""
        existing = self._edge_index.get((source, target))
        if existing is not None:
            return existing

        source_node = self.add_node(source)
        target_node = self.add_node(target)
        edge = GraphEdge(source_node, target_node, value)
        source_node.add_edge(edge)
        target_node.add_edge(edge)
        self.edges.append(edge)
        self._edge_index[edge.key] = edge
        return edge

    # -- Query -----------------------------------------------------------------

    def get_node(self, id: str) -> GraphNode | None:  # noqa: A002
        return self.nodes.get(id)

    def has_node(self, node: str | GraphNode) -> bool:
        node_id = node.id if isinstance(node, GraphNode) else node
        return node_id in self.nodes

    @overload
    def has_edge(self, edge: GraphEdge, /) -> bool: ...

    @overload
    def has_edge(self, source: str | GraphNode, target: str | GraphNode, /) -> bool: ...

    def has_edge(self, first: GraphEdge | str | GraphNode, second: str | GraphNode | None = None, /) -> bool:
        if isinstance(first, GraphEdge):
            return first.key in self._edge_index
        if second is None:
            msg = "has_edge() needs either an edge or a source/target pair"
            raise TypeError(msg)
        source_id = first.id if isinstance(first, GraphNode) else first
        target_id = second.id if isinstance(second, GraphNode) else second
        return (source_id, target_id) in self._edge_index

    def get_topological_order(self) -> list[GraphNode]:
        """Return nodes so that every node comes after all of its dependencies.

        Unrelated nodes keep node insertion order (dependencies are visited in
        edge insertion order), so the result is the same on every run for the
        same graph.  Raises ``CycleError`` naming the cycle if there is one.
        """
        order: list[GraphNode] = []
        done: set[str] = set()
        path: list[str] = []

        def visit(node: GraphNode) -> None:
            if node.id in done:
                return
            if node.id in path:
                raise CycleError([*path[path.index(node.id) :], node.id])
            path.append(node.id)
            for dependency in node.dependencies():
                visit(dependency)
            path.pop()
            done.add(node.id)
            order.append(node)

        for node in self.nodes.values():
            visit(node)
        return order

    # -- Export ----------------------------------------------------------------

    def to_mermaid(self) -> str:
        """Render the graph as a mermaid ``graph TD`` diagram.

        Every edge becomes a line; nodes are numbered in order of first
        appearance and only labelled the first time.  Nodes without edges
        are listed at the end.
        """
        identifiers: dict[str, int] = {}

        def label(node: GraphNode) -> str:
            if node.id in identifiers:
                return str(identifiers[node.id])
            identifiers[node.id] = len(identifiers) + 1
            return f"{identifiers[node.id]}([{node.id}])"

        lines = ["graph TD"]
        for edge in self.edges:
            lines.append(f"  {label(edge.source)}--->{label(edge.target)};")
        for node in self.nodes.values():
            if node.id not in identifiers:
                lines.append(f"  {label(node)};")
        return "\n".join(lines) + "\n"

    def __str__(self) -> str:
        return self.to_mermaid()
