import logging
from collections import defaultdict
from typing import Dict, List, Optional, Iterable, Iterator, Set, Tuple

from roadmap.core.errors import NodeNotFoundError
from roadmap.core.types import (
    GraphNode, GraphEdge, SolutionNode,
    STATUS_BACKLOG, STATUS_DONE,
)

logger = logging.getLogger(__name__)


class GraphState:
    """Indexed roadmap graph plus its mutable completion state.

    Structure (nodes, edges, adjacency, parent/child links, descendant lists)
    is built once and never changes. Only the completed set and the per-node
    status mutate, through `set_completed`.
    """

    def __init__(
        self,
        nodes: Iterable[GraphNode],
        edges: Iterable[GraphEdge],
        descendants: Dict[str, List[str]],
        completed: Optional[Iterable[str]] = None,
    ):
        self.nodes: Dict[str, GraphNode] = {}
        self.edges: Tuple[GraphEdge, ...] = tuple(edges)
        self._outgoing: Dict[str, List[GraphEdge]] = {}
        self._incoming: Dict[str, List[GraphEdge]] = {}
        self._children: Dict[str, List[str]] = {}

        for node in nodes:
            self.nodes[node.id] = node
            self._outgoing[node.id] = []
            self._incoming[node.id] = []
            self._children[node.id] = []

        for edge in self.edges:
            if edge.source in self._outgoing:
                self._outgoing[edge.source].append(edge)
            if edge.target in self._incoming:
                self._incoming[edge.target].append(edge)

        for node in self.nodes.values():
            if node.parent_id and node.parent_id in self._children:
                self._children[node.parent_id].append(node.id)

        self._descendants: Dict[str, Tuple[str, ...]] = {
            node_id: tuple(descendants.get(node_id, ())) for node_id in self.nodes
        }

        if completed is None:
            completed = [n.id for n in self.nodes.values() if n.status == STATUS_DONE]
        self.completed: Set[str] = set(completed)
        self.statuses: Dict[str, str] = {n.id: n.status for n in self.nodes.values()}
        for node_id in self.completed:
            self.statuses[node_id] = STATUS_DONE

        logger.debug(
            "Indexed roadmap graph",
            extra={"nodes": len(self.nodes), "edges": len(self.edges), "completed": len(self.completed)},
        )

    # --- lookups ---

    def has_node(self, node_id: str) -> bool:
        return node_id in self.nodes

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return self.nodes.get(node_id)

    def require_node(self, node_id: str) -> GraphNode:
        node = self.nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def outgoing(self, node_id: str, edge_type: Optional[str] = None) -> List[GraphEdge]:
        edges = self._outgoing.get(node_id, [])
        if edge_type is None:
            return list(edges)
        return [e for e in edges if e.type == edge_type]

    def incoming(self, node_id: str, edge_type: Optional[str] = None) -> List[GraphEdge]:
        edges = self._incoming.get(node_id, [])
        if edge_type is None:
            return list(edges)
        return [e for e in edges if e.type == edge_type]

    def edges_of_type(self, edge_type: str) -> List[GraphEdge]:
        return [e for e in self.edges if e.type == edge_type]

    def children(self, node_id: str) -> List[str]:
        return list(self._children.get(node_id, []))

    def descendants(self, node_id: str) -> Tuple[str, ...]:
        return self._descendants.get(node_id, ())

    def nodes_of_type(self, node_type: str) -> List[GraphNode]:
        return [n for n in self.nodes.values() if n.type == node_type]

    def ancestors(self, node_id: str) -> Iterator[str]:
        """Yield parent, grandparent, ... up to the root (nearest first)."""
        seen = {node_id}
        node = self.nodes.get(node_id)
        while node is not None and node.parent_id:
            parent_id = node.parent_id
            if parent_id in seen:  # malformed parent chain; stop rather than loop
                break
            seen.add(parent_id)
            yield parent_id
            node = self.nodes.get(parent_id)

    def find_ancestor_of_type(self, node_id: str, node_type: str) -> Optional[str]:
        """Closest node of `node_type` on the chain starting at the node itself."""
        node = self.nodes.get(node_id)
        if node is None:
            return None
        if node.type == node_type:
            return node.id
        for ancestor_id in self.ancestors(node_id):
            if self.nodes[ancestor_id].type == node_type:
                return ancestor_id
        return None

    # --- solution attributes (0 for hierarchical nodes) ---

    def base_effort(self, node_id: str) -> int:
        node = self.nodes.get(node_id)
        return node.base_effort if isinstance(node, SolutionNode) else 0

    def base_risk(self, node_id: str) -> float:
        node = self.nodes.get(node_id)
        return node.base_risk if isinstance(node, SolutionNode) else 0.0

    def base_uncertainty(self, node_id: str) -> float:
        node = self.nodes.get(node_id)
        return node.base_uncertainty if isinstance(node, SolutionNode) else 0.0

    # --- completion state ---

    def is_completed(self, node_id: str) -> bool:
        return node_id in self.completed

    def set_completed(self, node_id: str, completed: bool) -> None:
        self.require_node(node_id)
        if completed:
            self.completed.add(node_id)
            self.statuses[node_id] = STATUS_DONE
        else:
            self.completed.discard(node_id)
            self.statuses[node_id] = STATUS_BACKLOG

    def status(self, node_id: str) -> str:
        self.require_node(node_id)
        return self.statuses[node_id]

    def clone(self) -> 'GraphState':
        """Independent completion state over the same (immutable) structure."""
        other = object.__new__(GraphState)
        other.nodes = self.nodes
        other.edges = self.edges
        other._outgoing = self._outgoing
        other._incoming = self._incoming
        other._children = self._children
        other._descendants = self._descendants
        other.completed = set(self.completed)
        other.statuses = dict(self.statuses)
        return other

    def edge_type_counts(self) -> Dict[str, int]:
        counts: Dict[str, int] = defaultdict(int)
        for edge in self.edges:
            counts[edge.type] += 1
        return dict(counts)
