# --- roadmap graph engine ---
import logging
import pandas as pd
from typing import Any, Dict, Iterable, List, Optional, Tuple

from roadmap.core.config import AppConfig
from roadmap.core.graph_state import GraphState
from roadmap.core.metric_types import (
    AggregatedEdge, CompletionImpact, CriticalPath, DerivedEdge, GraphSnapshot,
    NodeMetrics, ResolvedDependency, SequenceResult,
)
from roadmap.core.types import (
    GraphDocument, GraphNode, NODE_TYPES, NODE_TYPE_SOLUTION, HIERARCHICAL_NODE_TYPES, SolutionNode,
)

from roadmap.services.descendant_cache import DescendantCacheStore

from roadmap.calculators.descendant_index import DescendantIndex
from roadmap.calculators.dependency_resolver import DependencyResolver
from roadmap.calculators.adjustment_calculator import AdjustmentCalculator
from roadmap.calculators.influence_calculator import InfluenceCalculator
from roadmap.calculators.topology_calculator import TopologyCalculator
from roadmap.calculators.cross_cutting_calculator import CrossCuttingCalculator
from roadmap.calculators.priority_calculator import PriorityCalculator

from roadmap.orchestration.completion_simulator import CompletionSimulator

logger = logging.getLogger(__name__)


class RoadmapEngine:
    """
    Graph metrics and completion-simulation engine over one loaded roadmap document.
    Delegates each metric family to a specialized calculator sharing one GraphState.

    Queries:
        - engine.resolve_dependencies(id) / engine.is_ready(id)
        - engine.get_effective_effort(id), engine.get_adjusted_risk(id), ...
        - engine.compute_all_metrics() / engine.metrics_frame()
        - engine.find_critical_path(), engine.find_cycles(), engine.find_clusters()

    State transitions:
        - engine.mark_completed(id) / engine.mark_incomplete(id)
        - engine.preview_completion(id)
        - engine.take_snapshot() / engine.simulate_sequence(ids)

    Use engine.clone() to compare completion sequences independently.
    """

    def __init__(
        self,
        document: GraphDocument,
        config: Optional[AppConfig] = None,
        cache_store: Optional[DescendantCacheStore] = None,
    ):
        """Index the document and build (or load) the descendant index.

        Args:
            document: Validated graph document (see load_graph_document)
            config: Optional AppConfig instance (default: AppConfig.from_env())
            cache_store: Optional descendant cache; defaults to one at the configured
                cache path, or none when no path is configured
        """
        self.document = document
        self.config = config or AppConfig.from_env()
        if cache_store is None and self.config.cache.enabled:
            cache_store = DescendantCacheStore(self.config.cache.cache_path)
        self.cache_store = cache_store

        logger.debug(
            "Initializing RoadmapEngine",
            extra={"title": document.meta.title, "nodes": len(document.nodes), "edges": len(document.edges)},
        )

        descendants = self._load_descendants(document.nodes)
        self._attach(GraphState(document.nodes, document.edges, descendants))

    def _load_descendants(self, nodes: List[GraphNode]) -> Dict[str, List[str]]:
        if self.cache_store is None:
            return DescendantIndex.compute(nodes)

        fingerprint = DescendantCacheStore.fingerprint(nodes)
        cached = self.cache_store.load(fingerprint)
        if cached is not None and DescendantIndex.is_complete(cached, nodes):
            return cached

        descendants = DescendantIndex.compute(nodes)
        self.cache_store.save(fingerprint, descendants)
        return descendants

    def _attach(self, state: GraphState, history: Iterable[GraphSnapshot] = ()) -> None:
        """Wire calculators to a state object."""
        self.state = state
        self.resolver = DependencyResolver(state)
        self.adjustments = AdjustmentCalculator(state)
        self.influence = InfluenceCalculator(state, self.config.influence)
        self.topology = TopologyCalculator(state, self.adjustments)
        self.cross_cutting = CrossCuttingCalculator(state)
        self.priority = PriorityCalculator(state, self.config.weights, self.adjustments)
        self.simulator = CompletionSimulator(
            state, self.resolver, self.adjustments, self.config.simulation, history=history
        )

    def clone(self) -> 'RoadmapEngine':
        """Independent engine over the same structure with a copy of the completion state and history."""
        other = object.__new__(RoadmapEngine)
        other.document = self.document
        other.config = self.config
        other.cache_store = self.cache_store
        other._attach(self.state.clone(), self.simulator.history)
        return other

    # --- accessors ---

    def get_node(self, node_id: str) -> Optional[GraphNode]:
        return self.state.get_node(node_id)

    def get_all_nodes(self) -> List[GraphNode]:
        return list(self.state.nodes.values())

    def get_nodes_by_type(self, node_type: str) -> List[GraphNode]:
        return self.state.nodes_of_type(node_type)

    def get_status(self, node_id: str) -> str:
        return self.state.status(node_id)

    def is_completed(self, node_id: str) -> bool:
        return self.state.is_completed(node_id)

    @property
    def completed_nodes(self) -> frozenset:
        return frozenset(self.state.completed)

    def get_descendants(self, node_id: str) -> Tuple[str, ...]:
        return self.state.descendants(node_id)

    # --- dependencies ---

    def resolve_dependencies(self, node_id: str) -> List[ResolvedDependency]:
        return self.resolver.resolve_dependencies(node_id)

    def is_ready(self, node_id: str) -> bool:
        return self.resolver.is_ready(node_id)

    def get_depends_on_count(self, node_id: str) -> int:
        return self.resolver.depends_on_count(node_id)

    # --- degrees ---

    def get_in_degree(self, node_id: str) -> int:
        return len(self.state.incoming(node_id))

    def get_out_degree(self, node_id: str) -> int:
        return len(self.state.outgoing(node_id))

    def get_depended_on_by_count(self, node_id: str) -> int:
        return self.adjustments.depended_on_by_count(node_id)

    def get_weighted_blocking_count(self, node_id: str) -> int:
        return self.adjustments.weighted_blocking_count(node_id)

    def get_facilitates_count(self, node_id: str) -> int:
        return self.adjustments.facilitates_count(node_id)

    # --- effort / uncertainty / risk ---

    def get_effective_effort(self, node_id: str) -> int:
        return self.adjustments.effective_effort(node_id)

    def get_adjusted_uncertainty(self, node_id: str) -> float:
        return self.adjustments.adjusted_uncertainty(node_id)

    def get_adjusted_effort(self, node_id: str) -> float:
        return self.adjustments.adjusted_effort(node_id)

    def get_total_effort(self, node_id: str) -> int:
        return self.adjustments.total_effort(node_id)

    def get_downstream_effort(self, node_id: str) -> int:
        return self.adjustments.downstream_effort(node_id)

    def get_adjusted_risk(self, node_id: str) -> float:
        return self.adjustments.adjusted_risk(node_id)

    def get_safety_factor(self, node_id: str) -> float:
        return self.adjustments.safety_factor(node_id)

    def compute_risk_mitigation_value(self, node_id: str) -> float:
        return self.adjustments.risk_mitigation_value(node_id)

    def get_total_risky_effort(self) -> float:
        return self.adjustments.total_risky_effort()

    # --- scores ---

    def compute_influence_scores(self) -> Dict[str, float]:
        return self.influence.calculate_influence_scores()

    def compute_readiness(self, node_id: str) -> float:
        return self.priority.calculate_readiness(node_id)

    def compute_leverage(self, node_id: str) -> float:
        return self.priority.calculate_leverage(node_id)

    def compute_priority_score(self, node_id: str, influence_scores: Optional[Dict[str, float]] = None) -> float:
        if influence_scores is None:
            influence_scores = self.compute_influence_scores()
        return self.priority.calculate_priority(node_id, influence_scores)

    # --- topology ---

    def compute_topological_levels(self) -> Dict[str, int]:
        return self.topology.calculate_levels()

    def find_critical_path(self) -> CriticalPath:
        return self.topology.calculate_critical_path()

    def find_cycles(self) -> List[List[str]]:
        return self.topology.find_cycles()

    def find_clusters(self) -> Dict[str, List[str]]:
        return self.topology.find_clusters()

    # --- cross-cutting ---

    def compute_derived_edges(self, node_type: str) -> List[DerivedEdge]:
        return self.cross_cutting.compute_derived_edges(node_type)

    def get_cross_cutting_edges(self, node_id: str) -> List[DerivedEdge]:
        return self.cross_cutting.get_cross_cutting_edges(node_id)

    def aggregate_derived_edges(self, derived: List[DerivedEdge]) -> Dict[str, AggregatedEdge]:
        return self.cross_cutting.aggregate_derived_edges(derived)

    # --- completion simulation ---

    def mark_completed(self, node_id: str) -> CompletionImpact:
        return self.simulator.mark_completed(node_id)

    def mark_incomplete(self, node_id: str) -> None:
        self.simulator.mark_incomplete(node_id)

    def preview_completion(self, node_id: str) -> CompletionImpact:
        return self.simulator.preview_completion(node_id)

    def take_snapshot(self) -> GraphSnapshot:
        return self.simulator.take_snapshot()

    @property
    def history(self) -> Tuple[GraphSnapshot, ...]:
        return self.simulator.history

    def history_frame(self) -> pd.DataFrame:
        return self.simulator.history_frame()

    def simulate_sequence(self, node_ids: Iterable[str]) -> SequenceResult:
        return self.simulator.simulate_sequence(node_ids)

    # --- whole-graph views ---

    def compute_all_metrics(self) -> List[NodeMetrics]:
        """
        Calculate the metrics bundle for every node (document order).

        Levels, influence, subtree totals and derived edges are computed once
        per call and shared across nodes.
        """
        levels = self.compute_topological_levels()
        influence = self.compute_influence_scores()
        totals = self.adjustments.all_total_efforts()
        derived_by_type = {t: self.compute_derived_edges(t) for t in HIERARCHICAL_NODE_TYPES}

        metrics: List[NodeMetrics] = []
        for node_id, node in self.state.nodes.items():
            readiness = self.compute_readiness(node_id)
            leverage = self.compute_leverage(node_id)
            effective = self.get_effective_effort(node_id)
            uncertainty = self.get_adjusted_uncertainty(node_id)

            cross_cutting = None
            if node.is_hierarchical:
                cross_cutting = self.cross_cutting.get_cross_cutting_edges(node_id, derived_by_type[node.type])

            metrics.append(NodeMetrics(
                id=node_id,
                title=node.title,
                type=node.type,
                in_degree=self.get_in_degree(node_id),
                out_degree=self.get_out_degree(node_id),
                depends_on_count=self.get_depends_on_count(node_id),
                depended_on_by_count=self.get_depended_on_by_count(node_id),
                weighted_blocking_count=self.get_weighted_blocking_count(node_id),
                facilitates_count=self.get_facilitates_count(node_id),
                direct_effort=effective,
                total_effort=totals.get(node_id, 0),
                uncertainty=uncertainty,
                adjusted_effort=effective * (1.0 + uncertainty),
                base_risk=self.state.base_risk(node_id),
                adjusted_risk=self.get_adjusted_risk(node_id),
                risk_mitigation_value=self.compute_risk_mitigation_value(node_id),
                readiness=readiness,
                leverage=leverage,
                safety_factor=self.get_safety_factor(node_id),
                priority_score=self.priority.calculate_priority(node_id, influence, readiness, leverage),
                topo_level=levels.get(node_id, 0),
                influence_score=influence.get(node_id, 0.0),
                cross_cutting_edges=cross_cutting,
            ))

        logger.debug("Computed metrics for all nodes", extra={"nodes": len(metrics)})
        return metrics

    def metrics_frame(self) -> pd.DataFrame:
        """All node metrics as a DataFrame indexed by node id (cross-cutting edges as a count)."""
        rows = []
        for m in self.compute_all_metrics():
            row = m.to_dict()
            edges = row.pop('cross_cutting_edges', None)
            row['cross_cutting_count'] = len(edges) if edges is not None else 0
            rows.append(row)
        df = pd.DataFrame(rows)
        if df.empty:
            return df
        return df.set_index('id')

    def get_graph_summary(self) -> Dict[str, Any]:
        """Node/edge counts and the base effort and risk profile of the solutions."""
        solutions = [n for n in self.state.nodes_of_type(NODE_TYPE_SOLUTION) if isinstance(n, SolutionNode)]
        total_effort = sum(n.base_effort for n in solutions)
        risky = [n for n in solutions if n.base_risk >= 0.5]
        risky_effort = sum(n.base_effort for n in risky)
        average_risk = sum(n.base_risk for n in solutions) / len(solutions) if solutions else 0.0

        return {
            'title': self.document.meta.title,
            'node_count': len(self.state.nodes),
            'nodes_by_type': {t: len(self.state.nodes_of_type(t)) for t in NODE_TYPES},
            'edge_count': len(self.state.edges),
            'edges_by_type': self.state.edge_type_counts(),
            'total_effort': total_effort,
            'high_risk_solutions': len(risky),
            'high_risk_effort': risky_effort,
            'average_risk': average_risk,
            'risky_effort_ratio': risky_effort / total_effort if total_effort else 0.0,
            'total_risky_effort': self.get_total_risky_effort(),
        }
