from typing import Dict, List, Optional, Tuple

from roadmap.calculators.calculator_base import GraphCalculatorBase
from roadmap.core.metric_types import DerivedEdge, AggregatedEdge


class CrossCuttingCalculator(GraphCalculatorBase):
    """Lifts descendant edges that cross hierarchy branches to the ancestors at one level."""

    def compute_derived_edges(self, node_type: str) -> List[DerivedEdge]:
        derived: List[DerivedEdge] = []
        for parent in self.state.nodes_of_type(node_type):
            groups: Dict[Tuple[str, str], List[str]] = {}
            for descendant_id in self.state.descendants(parent.id):
                for edge in self.state.outgoing(descendant_id):
                    if not self.state.has_node(edge.target):
                        continue
                    target_parent = self.state.find_ancestor_of_type(edge.target, node_type)
                    if target_parent is None or target_parent == parent.id:
                        continue
                    groups.setdefault((target_parent, edge.type), []).append(edge.id)

            for (target_parent, edge_type), edge_ids in groups.items():
                derived.append(DerivedEdge(
                    source=parent.id,
                    target=target_parent,
                    type=edge_type,
                    weight=len(edge_ids),
                    child_edges=edge_ids,
                ))
        return derived

    def get_cross_cutting_edges(self, node_id: str, derived: Optional[List[DerivedEdge]] = None) -> List[DerivedEdge]:
        """Derived edges at the node's own level that start or end at the node.

        Pass `derived` (already computed for the node's type) to avoid recomputing it.
        """
        node = self.state.get_node(node_id)
        if node is None:
            return []
        if derived is None:
            derived = self.compute_derived_edges(node.type)
        return [e for e in derived if e.source == node_id or e.target == node_id]

    @staticmethod
    def aggregate_derived_edges(derived: List[DerivedEdge]) -> Dict[str, AggregatedEdge]:
        """Collapse derived edges per (source, target) pair, keyed "source->target"."""
        aggregated: Dict[str, AggregatedEdge] = {}
        for edge in derived:
            key = f"{edge.source}->{edge.target}"
            summary = aggregated.get(key)
            if summary is None:
                summary = aggregated[key] = AggregatedEdge(source=edge.source, target=edge.target)
            summary.total_weight += edge.weight
            summary.by_type[edge.type] = summary.by_type.get(edge.type, 0) + edge.weight
        return aggregated
