from typing import Dict, List

from roadmap.calculators.calculator_base import GraphCalculatorBase
from roadmap.core.metric_types import (
    ResolvedDependency,
    DEPENDENCY_ORIGIN_DIRECT, DEPENDENCY_ORIGIN_INHERITED, DEPENDENCY_ORIGIN_PROMOTED,
)
from roadmap.core.types import EDGE_DEPENDS_ON


class DependencyResolver(GraphCalculatorBase):
    """Resolves which DEPENDS_ON edges a node has to wait on.

    A node waits on its own edges, on every ancestor's edges, and (for
    pillars, initiatives and problems) on edges leaving its subtree from any
    descendant. The first qualifying edge per target wins, in that order.
    """

    def resolve_dependencies(self, node_id: str) -> List[ResolvedDependency]:
        node = self.state.get_node(node_id)
        if node is None:
            return []

        resolved: Dict[str, ResolvedDependency] = {}

        for edge in self.state.outgoing(node_id, EDGE_DEPENDS_ON):
            if edge.target not in resolved:
                resolved[edge.target] = ResolvedDependency(edge, DEPENDENCY_ORIGIN_DIRECT, node_id)

        for ancestor_id in self.state.ancestors(node_id):
            for edge in self.state.outgoing(ancestor_id, EDGE_DEPENDS_ON):
                if edge.target not in resolved:
                    resolved[edge.target] = ResolvedDependency(edge, DEPENDENCY_ORIGIN_INHERITED, ancestor_id)

        if node.is_hierarchical:
            subtree = set(self.state.descendants(node_id))
            for descendant_id in self.state.descendants(node_id):
                for edge in self.state.outgoing(descendant_id, EDGE_DEPENDS_ON):
                    if edge.target in resolved or edge.target in subtree:
                        continue
                    target_ancestor = self.state.find_ancestor_of_type(edge.target, node.type)
                    if target_ancestor is None or target_ancestor == node_id:
                        continue
                    resolved[edge.target] = ResolvedDependency(
                        edge, DEPENDENCY_ORIGIN_PROMOTED, descendant_id, target_ancestor
                    )

        return list(resolved.values())

    def is_ready(self, node_id: str) -> bool:
        """True when every resolved dependency target is completed."""
        return not self.unmet_dependencies(node_id)

    def depends_on_count(self, node_id: str) -> int:
        return len(self.resolve_dependencies(node_id))

    def unmet_dependencies(self, node_id: str) -> List[ResolvedDependency]:
        """Resolved dependencies whose target is not completed yet."""
        return [dep for dep in self.resolve_dependencies(node_id) if not self.state.is_completed(dep.target)]
