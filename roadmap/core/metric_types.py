from datetime import datetime
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any, FrozenSet

from roadmap.core.types import GraphEdge

# Origins of a resolved dependency, in precedence order
DEPENDENCY_ORIGIN_DIRECT = "direct"
DEPENDENCY_ORIGIN_INHERITED = "inherited"
DEPENDENCY_ORIGIN_PROMOTED = "promoted"


# --- Dependency resolution ---
@dataclass(frozen=True)
class ResolvedDependency:
    """A DEPENDS_ON edge a node has to wait on, with where it was found."""
    edge: GraphEdge
    origin: str  # "direct" | "inherited" | "promoted"
    found_on: str  # node whose outgoing edge this is (self, an ancestor, or a descendant)
    target_ancestor: Optional[str] = None  # promoted only: target's ancestor at the querying node's level

    @property
    def target(self) -> str:
        return self.edge.target


# --- Cross-cutting relationships ---
@dataclass
class DerivedEdge:
    """Edge synthesized at a hierarchy level from descendant edges crossing branches."""
    source: str  # ancestor node id
    target: str  # ancestor node id
    type: str
    weight: int  # count of contributing descendant edges
    child_edges: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "type": self.type,
            "weight": self.weight,
            "childEdges": list(self.child_edges),
        }


@dataclass
class AggregatedEdge:
    """All derived edges between one (source, target) pair collapsed into one summary."""
    source: str
    target: str
    total_weight: int = 0
    by_type: Dict[str, int] = field(default_factory=dict)


# --- Topology ---
@dataclass
class CriticalPath:
    """Longest effort-weighted DEPENDS_ON chain."""
    path: List[str] = field(default_factory=list)
    total_effort: int = 0


# --- Per-node metrics bundle ---
@dataclass
class NodeMetrics:
    """Computed metrics for one node; recomputed from the current completion state."""
    id: str
    title: str
    type: str

    # Degree metrics
    in_degree: int = 0  # all incoming edges
    out_degree: int = 0  # all outgoing edges
    depends_on_count: int = 0  # resolved dependencies (direct, inherited, promoted)
    depended_on_by_count: int = 0  # DEPENDS_ON edges targeting this node
    weighted_blocking_count: int = 0  # blocked nodes plus all of their descendants
    facilitates_count: int = 0  # outgoing FACILITATES edges

    # Effort metrics
    direct_effort: int = 0  # effective effort (solutions only)
    total_effort: int = 0  # sum over the subtree

    # Uncertainty metrics
    uncertainty: float = 0.0  # adjusted uncertainty
    adjusted_effort: float = 0.0  # effective effort x (1 + uncertainty)

    # Risk metrics
    base_risk: float = 0.0
    adjusted_risk: float = 0.0
    risk_mitigation_value: float = 0.0

    # Scores
    readiness: float = 0.0
    leverage: float = 0.0
    safety_factor: float = 1.0
    priority_score: float = 0.0

    topo_level: int = 0
    influence_score: float = 0.0

    # Hierarchical node types only
    cross_cutting_edges: Optional[List[DerivedEdge]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Flat dictionary for DataFrame construction and JSON output."""
        data = {k: v for k, v in self.__dict__.items() if k != 'cross_cutting_edges'}
        if self.cross_cutting_edges is not None:
            data['cross_cutting_edges'] = [e.to_dict() for e in self.cross_cutting_edges]
        return data


# --- Completion simulation ---
@dataclass
class ReadyNode:
    id: str
    title: str
    effort: int


@dataclass
class EffortReduction:
    id: str
    title: str
    old_effort: int
    new_effort: int
    reason: Optional[str] = None  # annotation of the FACILITATES edge

    @property
    def saved(self) -> int:
        return self.old_effort - self.new_effort


@dataclass
class RiskReduction:
    id: str
    title: str
    old_risk: float
    new_risk: float
    effort: int


@dataclass
class CompletionImpact:
    """What completing one node unblocks, speeds up and derisks."""
    node_id: str
    node_title: str
    now_ready: List[ReadyNode] = field(default_factory=list)
    effort_reductions: List[EffortReduction] = field(default_factory=list)
    risk_reductions: List[RiskReduction] = field(default_factory=list)

    # Summary metrics
    total_effort_unblocked: int = 0
    total_effort_saved: int = 0
    total_risk_reduced: float = 0.0

    @property
    def total_potential_impact(self) -> int:
        return self.total_effort_unblocked + self.total_effort_saved

    def to_dict(self) -> Dict[str, Any]:
        return {
            "node_id": self.node_id,
            "node_title": self.node_title,
            "now_ready": [r.__dict__.copy() for r in self.now_ready],
            "effort_reductions": [r.__dict__.copy() for r in self.effort_reductions],
            "risk_reductions": [r.__dict__.copy() for r in self.risk_reductions],
            "total_effort_unblocked": self.total_effort_unblocked,
            "total_effort_saved": self.total_effort_saved,
            "total_risk_reduced": self.total_risk_reduced,
        }


@dataclass(frozen=True)
class GraphSnapshot:
    """Immutable record of aggregate remaining effort at a point in time."""
    timestamp: datetime
    completed_nodes: FrozenSet[str]
    total_remaining_effort: int
    ready_effort: int
    blocked_effort: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "completed_count": len(self.completed_nodes),
            "total_remaining_effort": self.total_remaining_effort,
            "ready_effort": self.ready_effort,
            "blocked_effort": self.blocked_effort,
        }


@dataclass
class SequenceResult:
    """Outcome of completing several nodes one after another."""
    initial_snapshot: GraphSnapshot
    final_snapshot: GraphSnapshot
    impacts: List[CompletionImpact] = field(default_factory=list)
    not_found: List[str] = field(default_factory=list)
    already_completed: List[str] = field(default_factory=list)

    @property
    def effort_reduction(self) -> int:
        return self.initial_snapshot.total_remaining_effort - self.final_snapshot.total_remaining_effort


# --- Planning ---
@dataclass
class PlanOfAttack:
    """Actionable solution shortlists derived from the metrics table."""
    top_priorities: List[NodeMetrics] = field(default_factory=list)
    quick_wins: List[NodeMetrics] = field(default_factory=list)
    critical_risks: List[NodeMetrics] = field(default_factory=list)
    critical_path: List[str] = field(default_factory=list)  # incomplete nodes only, in path order
    critical_path_effort: int = 0

    @property
    def is_complete(self) -> bool:
        """True when no actionable solution is left."""
        return not self.top_priorities


@dataclass
class ProblemPlan:
    problem: NodeMetrics
    start_with: Optional[NodeMetrics] = None  # top-priority solution under the problem


@dataclass
class InitiativePlan:
    initiative: NodeMetrics
    cross_pillar_count: int = 0
    problems: List[ProblemPlan] = field(default_factory=list)
