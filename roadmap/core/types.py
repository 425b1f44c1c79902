from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any

# Centralized node-type constants for reuse across calculators
NODE_TYPE_PILLAR = "pillar"
NODE_TYPE_INITIATIVE = "initiative"
NODE_TYPE_PROBLEM = "problem"
NODE_TYPE_SOLUTION = "solution"

NODE_TYPES = (NODE_TYPE_PILLAR, NODE_TYPE_INITIATIVE, NODE_TYPE_PROBLEM, NODE_TYPE_SOLUTION)
HIERARCHICAL_NODE_TYPES = (NODE_TYPE_PILLAR, NODE_TYPE_INITIATIVE, NODE_TYPE_PROBLEM)

# Edge-type constants
EDGE_DEPENDS_ON = "DEPENDS_ON"
EDGE_FACILITATES = "FACILITATES"
EDGE_DERISKS = "DERISKS"
EDGE_INFORMS = "INFORMS"
EDGE_NEEDS_COORDINATION = "NEEDS_COORDINATION"
EDGE_RELATES_TO = "RELATES_TO"

EDGE_TYPES = (
    EDGE_DEPENDS_ON,
    EDGE_FACILITATES,
    EDGE_DERISKS,
    EDGE_INFORMS,
    EDGE_NEEDS_COORDINATION,
    EDGE_RELATES_TO,
)
# Edge types whose completed source multiplies the target's value by (1 - factor)
REDUCTION_EDGE_TYPES = (EDGE_FACILITATES, EDGE_DERISKS, EDGE_INFORMS)

# Node status values
STATUS_BACKLOG = "backlog"
STATUS_READY = "ready"
STATUS_IN_PROGRESS = "in_progress"
STATUS_DONE = "done"

NODE_STATUSES = (STATUS_BACKLOG, STATUS_READY, STATUS_IN_PROGRESS, STATUS_DONE)


# --- Graph nodes ---
@dataclass(frozen=True)
class GraphNode:
    """Node in the roadmap hierarchy (pillar, initiative or problem)."""
    id: str
    type: str  # "pillar" | "initiative" | "problem" | "solution"
    title: str
    description: str = ""
    parent_id: Optional[str] = None  # None for pillars and detached nodes
    status: str = STATUS_BACKLOG

    @property
    def is_hierarchical(self) -> bool:
        return self.type in HIERARCHICAL_NODE_TYPES

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the camelCase document shape."""
        data: Dict[str, Any] = {"id": self.id, "type": self.type, "title": self.title}
        if self.description:
            data["description"] = self.description
        if self.parent_id:
            data["parentId"] = self.parent_id
        data["status"] = self.status
        return data


@dataclass(frozen=True)
class SolutionNode(GraphNode):
    """Actionable leaf of the hierarchy; the only node kind that carries effort and risk."""
    base_effort: int = 0  # story points, >= 0
    base_risk: float = 0.0  # 0.0 (safe) to 1.0 (dangerous)
    base_uncertainty: float = 0.0  # 0.0 (known) to 1.0 (high unknowns)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data.update({
            "baseEffort": self.base_effort,
            "baseRisk": self.base_risk,
            "baseUncertainty": self.base_uncertainty,
        })
        return data


# --- Graph edges ---
@dataclass(frozen=True)
class GraphEdge:
    """Typed relationship between two nodes (DEPENDS_ON, NEEDS_COORDINATION, RELATES_TO)."""
    id: str
    source: str
    target: str
    type: str
    annotation: Optional[str] = None
    strength: Optional[float] = None  # 0-1 general edge strength

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id, "source": self.source, "target": self.target, "type": self.type}
        if self.annotation is not None:
            data["annotation"] = self.annotation
        if self.strength is not None:
            data["strength"] = self.strength
        return data


@dataclass(frozen=True)
class ReductionEdge(GraphEdge):
    """FACILITATES / DERISKS / INFORMS edge: completing the source scales the target by (1 - factor)."""
    factor: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["factor"] = self.factor
        return data


def make_node(data: Dict[str, Any]) -> GraphNode:
    """Build the tagged node variant from a camelCase document entry."""
    common = dict(
        id=data["id"],
        type=data["type"],
        title=data.get("title", data["id"]),
        description=data.get("description") or "",
        parent_id=data.get("parentId"),
        status=data.get("status") or STATUS_BACKLOG,
    )
    if data["type"] == NODE_TYPE_SOLUTION:
        return SolutionNode(
            **common,
            base_effort=int(data.get("baseEffort") or 0),
            base_risk=float(data.get("baseRisk") or 0.0),
            base_uncertainty=float(data.get("baseUncertainty") or 0.0),
        )
    return GraphNode(**common)


def make_edge(data: Dict[str, Any]) -> GraphEdge:
    """Build the tagged edge variant from a camelCase document entry."""
    common = dict(
        id=data["id"],
        source=data["source"],
        target=data["target"],
        type=data["type"],
        annotation=data.get("annotation"),
        strength=data.get("strength"),
    )
    if data["type"] in REDUCTION_EDGE_TYPES:
        return ReductionEdge(**common, factor=float(data.get("factor") or 0.0))
    return GraphEdge(**common)


# --- Input document ---
@dataclass
class GraphMeta:
    version: str
    title: str
    generated_at: str  # ISO-8601 timestamp


@dataclass
class GraphDocument:
    """Validated roadmap graph: metadata plus typed nodes and edges."""
    meta: GraphMeta
    nodes: List[GraphNode] = field(default_factory=list)
    edges: List[GraphEdge] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GraphDocument':
        meta = data.get("meta") or {}
        return cls(
            meta=GraphMeta(
                version=str(meta.get("version", "")),
                title=str(meta.get("title", "")),
                generated_at=str(meta.get("generatedAt", "")),
            ),
            nodes=[make_node(n) for n in data.get("nodes", [])],
            edges=[make_edge(e) for e in data.get("edges", [])],
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to the camelCase document shape for serialization."""
        return {
            "meta": {
                "version": self.meta.version,
                "title": self.meta.title,
                "generatedAt": self.meta.generated_at,
            },
            "nodes": [n.to_dict() for n in self.nodes],
            "edges": [e.to_dict() for e in self.edges],
        }


# --- Validation ---
@dataclass
class ValidationIssue:
    """One independent violation found in an input document."""
    code: str  # "schema" | "duplicate_id" | "dangling_reference" | "orphan_node" | "parent_cycle"
    message: str
    path: str  # "meta" | "nodes" | "edges" (optionally with an index, e.g. "nodes[3].baseRisk")

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "path": self.path}
