import logging
from collections import deque
from typing import Dict, List, Optional, Set, Iterator

from roadmap.calculators.adjustment_calculator import AdjustmentCalculator
from roadmap.calculators.calculator_base import GraphCalculatorBase
from roadmap.core.graph_state import GraphState
from roadmap.core.metric_types import CriticalPath
from roadmap.core.types import EDGE_DEPENDS_ON, EDGE_RELATES_TO

logger = logging.getLogger(__name__)


class TopologyCalculator(GraphCalculatorBase):
    """Whole-graph structure over DEPENDS_ON and RELATES_TO edges.

    Levels, critical path, cycles and clusters. Cyclic input is never an
    error: leveling falls back to one shared level and the cycle finder
    reports the loops.
    """

    CLUSTER_PREFIX = "cluster-"

    def __init__(self, state: GraphState, adjustments: Optional[AdjustmentCalculator] = None):
        super().__init__(state)
        self.adjustments = adjustments or AdjustmentCalculator(state)

    def calculate_levels(self) -> Dict[str, int]:
        """Dependency depth: 0 for nodes with no DEPENDS_ON targets."""
        deps: Dict[str, Set[str]] = {
            node_id: {e.target for e in self.state.outgoing(node_id, EDGE_DEPENDS_ON)}
            for node_id in self.state.nodes
        }
        levels: Dict[str, int] = {}
        level = 0
        while len(levels) < len(deps):
            peeled = [
                node_id for node_id, targets in deps.items()
                if node_id not in levels and all(t in levels for t in targets)
            ]
            if not peeled:
                remaining = [node_id for node_id in deps if node_id not in levels]
                logger.debug("Dependency cycle while leveling", extra={"remaining": len(remaining), "level": level})
                for node_id in remaining:
                    levels[node_id] = level
                break
            for node_id in peeled:
                levels[node_id] = level
            level += 1
        return levels

    def calculate_critical_path(self, levels: Optional[Dict[str, int]] = None) -> CriticalPath:
        """Longest effort-weighted chain through DEPENDS_ON edges."""
        if not self.state.nodes:
            return CriticalPath()

        levels = levels if levels is not None else self.calculate_levels()
        ordered = sorted(self.state.nodes, key=lambda n: (levels.get(n, 0), n))
        totals = self.adjustments.all_total_efforts()

        dist: Dict[str, int] = {node_id: totals[node_id] for node_id in ordered}
        prev: Dict[str, Optional[str]] = {node_id: None for node_id in ordered}

        for node_id in ordered:
            current = dist[node_id]
            for edge in self.state.incoming(node_id, EDGE_DEPENDS_ON):
                candidate = current + totals.get(edge.source, 0)
                if candidate > dist.get(edge.source, 0):
                    dist[edge.source] = candidate
                    prev[edge.source] = node_id

        end, best = ordered[0], 0
        for node_id in ordered:
            if dist[node_id] > best:
                end, best = node_id, dist[node_id]

        path: List[str] = []
        seen: Set[str] = set()
        current_id: Optional[str] = end
        while current_id is not None and current_id not in seen:
            seen.add(current_id)
            path.append(current_id)
            current_id = prev.get(current_id)
        path.reverse()
        return CriticalPath(path=path, total_effort=best)

    def find_cycles(self) -> List[List[str]]:
        """DEPENDS_ON loops found by depth-first search, each closed with its first node.

        The same loop may be reported more than once when reached along
        different back edges.
        """
        cycles: List[List[str]] = []
        visited: Set[str] = set()
        on_stack: Set[str] = set()
        path: List[str] = []

        for root in self.state.nodes:
            if root in visited:
                continue
            visited.add(root)
            on_stack.add(root)
            path.append(root)
            stack: List[Iterator] = [iter(self.state.outgoing(root, EDGE_DEPENDS_ON))]

            while stack:
                edge = next(stack[-1], None)
                if edge is None:
                    stack.pop()
                    on_stack.discard(path.pop())
                    continue
                target = edge.target
                if target not in visited:
                    visited.add(target)
                    on_stack.add(target)
                    path.append(target)
                    stack.append(iter(self.state.outgoing(target, EDGE_DEPENDS_ON)))
                elif target in on_stack:
                    start = path.index(target)
                    cycles.append(path[start:] + [target])

        if cycles:
            logger.debug("Dependency cycles found", extra={"cycles": len(cycles)})
        return cycles

    def find_clusters(self) -> Dict[str, List[str]]:
        """Connected components over RELATES_TO (undirected); singletons dropped."""
        neighbors: Dict[str, List[str]] = {node_id: [] for node_id in self.state.nodes}
        for edge in self.state.edges_of_type(EDGE_RELATES_TO):
            if edge.source in neighbors and edge.target in neighbors:
                neighbors[edge.source].append(edge.target)
                neighbors[edge.target].append(edge.source)

        clusters: Dict[str, List[str]] = {}
        visited: Set[str] = set()
        for node_id in self.state.nodes:
            if node_id in visited:
                continue
            component: List[str] = []
            queue = deque([node_id])
            while queue:
                current = queue.popleft()
                if current in visited:
                    continue
                visited.add(current)
                component.append(current)
                queue.extend(n for n in neighbors[current] if n not in visited)
            if len(component) > 1:
                clusters[f"{self.CLUSTER_PREFIX}{len(clusters)}"] = component
        return clusters
