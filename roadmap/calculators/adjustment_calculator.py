from collections import deque
from typing import Dict, Set

from roadmap.calculators.calculator_base import GraphCalculatorBase
from roadmap.core.types import (
    EDGE_DEPENDS_ON, EDGE_FACILITATES, EDGE_DERISKS, EDGE_INFORMS,
    NODE_TYPE_SOLUTION, ReductionEdge,
)


class AdjustmentCalculator(GraphCalculatorBase):
    """Effort, uncertainty and risk after completed FACILITATES / INFORMS / DERISKS sources.

    Every completed source of an incoming reduction edge multiplies the
    target's value by (1 - factor); reductions compound.
    """

    # --- effort ---

    def effective_effort(self, node_id: str) -> int:
        if self.state.is_completed(node_id):
            return 0
        base = self.state.base_effort(node_id)
        if base == 0:
            return 0
        return self._round_half_up(base * self._completed_factor_product(node_id, EDGE_FACILITATES))

    def adjusted_uncertainty(self, node_id: str) -> float:
        base = self.state.base_uncertainty(node_id)
        if base == 0:
            return 0.0
        return base * self._completed_factor_product(node_id, EDGE_INFORMS)

    def adjusted_effort(self, node_id: str) -> float:
        """Effective effort inflated by remaining uncertainty."""
        return self.effective_effort(node_id) * (1.0 + self.adjusted_uncertainty(node_id))

    def total_effort(self, node_id: str) -> int:
        """Effective effort of the whole subtree (0 for completed nodes)."""
        return self.total_efforts_for(node_id)[node_id]

    def total_efforts_for(self, node_id: str) -> Dict[str, int]:
        """Total effort of `node_id` and each of its descendants, computed bottom-up."""
        order = [node_id, *self.state.descendants(node_id)]
        totals: Dict[str, int] = {}
        # pre-order reversed: every child is finished before its parent
        for current in reversed(order):
            totals[current] = self._subtree_total(current, totals)
        return totals

    def all_total_efforts(self) -> Dict[str, int]:
        totals: Dict[str, int] = {}
        for node in self.state.nodes.values():
            if node.parent_id is None or node.parent_id not in self.state.nodes:
                totals.update(self.total_efforts_for(node.id))
        for node_id in self.state.nodes:  # nodes unreachable from a root (parent cycles)
            if node_id not in totals:
                totals[node_id] = self._subtree_total(node_id, totals)
        return totals

    def _subtree_total(self, node_id: str, totals: Dict[str, int]) -> int:
        node = self.state.nodes.get(node_id)
        if node is None or self.state.is_completed(node_id):
            return 0
        if node.type == NODE_TYPE_SOLUTION:
            return self.effective_effort(node_id)
        return sum(totals.get(child, 0) for child in self.state.children(node_id))

    def downstream_effort(self, node_id: str) -> int:
        """Total effort of every node transitively depending on `node_id`, each counted once."""
        visited: Set[str] = {node_id}
        queue = deque([node_id])
        total = 0
        while queue:
            current = queue.popleft()
            for edge in self.state.incoming(current, EDGE_DEPENDS_ON):
                if edge.source in visited:
                    continue
                visited.add(edge.source)
                total += self.total_effort(edge.source)
                queue.append(edge.source)
        return total

    # --- risk ---

    def adjusted_risk(self, node_id: str) -> float:
        base = self.state.base_risk(node_id)
        if base == 0:
            return 0.0
        return base * self._completed_factor_product(node_id, EDGE_DERISKS)

    def safety_factor(self, node_id: str) -> float:
        return 1.0 - self.adjusted_risk(node_id)

    def risk_mitigation_value(self, node_id: str) -> float:
        """Risk-weighted effort this node would derisk when completed."""
        if self.state.is_completed(node_id):
            return 0.0
        value = 0.0
        for edge in self.state.outgoing(node_id, EDGE_DERISKS):
            if self.state.is_completed(edge.target):
                continue
            factor = edge.factor if isinstance(edge, ReductionEdge) else 0.0
            value += factor * self.effective_effort(edge.target) * self.adjusted_risk(edge.target)
        return value

    def total_risky_effort(self) -> float:
        total = 0.0
        for node in self.state.nodes_of_type(NODE_TYPE_SOLUTION):
            if self.state.is_completed(node.id):
                continue
            total += self.effective_effort(node.id) * self.adjusted_risk(node.id)
        return total

    # --- blocking / degree ---

    def weighted_blocking_count(self, node_id: str) -> int:
        """Blocked nodes plus all of their descendants."""
        return sum(
            1 + len(self.state.descendants(edge.source))
            for edge in self.state.incoming(node_id, EDGE_DEPENDS_ON)
        )

    def depended_on_by_count(self, node_id: str) -> int:
        return len(self.state.incoming(node_id, EDGE_DEPENDS_ON))

    def facilitates_count(self, node_id: str) -> int:
        return len(self.state.outgoing(node_id, EDGE_FACILITATES))
