import logging
import numpy as np
from typing import Dict, Optional

from roadmap.calculators.calculator_base import GraphCalculatorBase
from roadmap.core.config import InfluenceConfig
from roadmap.core.graph_state import GraphState
from roadmap.core.types import EDGE_DEPENDS_ON, EDGE_FACILITATES

logger = logging.getLogger(__name__)


class InfluenceCalculator(GraphCalculatorBase):
    """PageRank-style influence over the "enables" graph.

    DEPENDS_ON A->B means completing B enables A; FACILITATES A->B means
    completing A enables B. The update sums, over each incoming DEPENDS_ON
    edge of v, score(target) / max(1, enables-out-degree(target)); the
    target is v itself, so a round is an element-wise vector update.
    Fixed number of rounds, no convergence test, normalized so the top
    score is 1.0.
    """

    DEFAULT_ITERATIONS = 20
    DEFAULT_DAMPING = 0.85

    def __init__(self, state: GraphState, config: Optional[InfluenceConfig] = None):
        super().__init__(state)
        self.iterations = config.iterations if config else self.DEFAULT_ITERATIONS
        self.damping = config.damping if config else self.DEFAULT_DAMPING

    def calculate_influence_scores(self) -> Dict[str, float]:
        node_ids = list(self.state.nodes)
        n = len(node_ids)
        if n == 0:
            return {}

        depended_on = np.array(
            [len(self.state.incoming(i, EDGE_DEPENDS_ON)) for i in node_ids], dtype=float
        )
        facilitates = np.array(
            [len(self.state.outgoing(i, EDGE_FACILITATES)) for i in node_ids], dtype=float
        )
        enables_out = np.maximum(1.0, depended_on + facilitates)

        scores = np.full(n, 1.0 / n)
        base = (1.0 - self.damping) / n
        for _ in range(self.iterations):
            scores = base + self.damping * depended_on * scores / enables_out

        peak = scores.max()
        if peak > 0:
            scores = scores / peak

        logger.debug("Computed influence scores", extra={"nodes": n, "iterations": self.iterations})
        return {node_id: float(score) for node_id, score in zip(node_ids, scores)}
