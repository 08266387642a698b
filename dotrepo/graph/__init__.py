"""Dependency graph engine."""

from dotrepo.graph.graph import CycleError, Graph, GraphEdge, GraphNode

__all__ = ["CycleError", "Graph", "GraphEdge", "GraphNode"]
