import math

from roadmap.core.graph_state import GraphState
from roadmap.core.types import ReductionEdge


class GraphCalculatorBase:
    """Base class giving calculators access to the shared graph state plus numeric helpers.

    Requires subclass to set `state` (a GraphState). Calculators never cache
    results across calls: every query reads the current completion state.
    """

    def __init__(self, state: GraphState):
        self.state = state

    def _completed_factor_product(self, node_id: str, edge_type: str) -> float:
        """Product of (1 - factor) over completed sources of incoming `edge_type` edges."""
        product = 1.0
        for edge in self.state.incoming(node_id, edge_type):
            if not self.state.is_completed(edge.source):
                continue
            factor = edge.factor if isinstance(edge, ReductionEdge) else 0.0
            product *= (1.0 - factor)
        return product

    @staticmethod
    def _round_half_up(value: float) -> int:
        """Round to nearest integer with .5 going up (2.5 -> 3)."""
        return int(math.floor(value + 0.5))
