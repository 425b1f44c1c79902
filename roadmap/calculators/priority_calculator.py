import math
from typing import Dict, Optional

from roadmap.calculators.adjustment_calculator import AdjustmentCalculator
from roadmap.calculators.calculator_base import GraphCalculatorBase
from roadmap.core.config import PriorityWeightsConfig
from roadmap.core.graph_state import GraphState
from roadmap.core.types import EDGE_DEPENDS_ON


class PriorityCalculator(GraphCalculatorBase):
    """Weighted priority score combining readiness, influence, leverage, safety and blocking.

    Leverage and blocking are log-normalized so one extreme node does not
    dominate; solutions that derisk expensive risky work get an extra bonus
    proportional to mitigation value per unit of their own effort.
    """

    LEVERAGE_LOG_BASE = 11  # leverage of 10 saturates at 1.0
    BLOCKING_LOG_BASE = 51  # 50 blocked nodes saturate at 1.0

    def __init__(
        self,
        state: GraphState,
        weights: Optional[PriorityWeightsConfig] = None,
        adjustments: Optional[AdjustmentCalculator] = None,
    ):
        super().__init__(state)
        self.weights = weights or PriorityWeightsConfig()
        self.adjustments = adjustments or AdjustmentCalculator(state)

    def calculate_readiness(self, node_id: str) -> float:
        """0.0 once completed, 1.0 when nothing depends on the node, else 1/(unmet+1).

        Counts incoming DEPENDS_ON edges whose target (the node itself) is
        not completed, so an open node that k others wait on scores 1/(k+1).
        """
        if self.state.is_completed(node_id):
            return 0.0
        deps = self.state.incoming(node_id, EDGE_DEPENDS_ON)
        if not deps:
            return 1.0
        unmet = sum(1 for e in deps if not self.state.is_completed(e.target))
        return 1.0 / (unmet + 1)

    def calculate_leverage(self, node_id: str) -> float:
        """Downstream effort per unit of own total effort."""
        own = self.adjustments.total_effort(node_id)
        if own == 0:
            return 0.0
        return self.adjustments.downstream_effort(node_id) / own

    def calculate_priority(
        self,
        node_id: str,
        influence_scores: Dict[str, float],
        readiness: Optional[float] = None,
        leverage: Optional[float] = None,
    ) -> float:
        w = self.weights
        readiness = self.calculate_readiness(node_id) if readiness is None else readiness
        leverage = self.calculate_leverage(node_id) if leverage is None else leverage
        influence = influence_scores.get(node_id, 0.0)
        safety = self.adjustments.safety_factor(node_id)
        blocking = self.adjustments.weighted_blocking_count(node_id)

        leverage_norm = min(1.0, math.log(1 + leverage) / math.log(self.LEVERAGE_LOG_BASE))
        blocking_norm = min(1.0, math.log(1 + blocking) / math.log(self.BLOCKING_LOG_BASE))

        base_score = (
            w.readiness * readiness
            + w.influence * influence
            + w.leverage * leverage_norm
            + w.safety_factor * safety
            + w.blocking_score * blocking_norm
        )

        effort = self.adjustments.effective_effort(node_id)
        bonus = 0.0
        if effort > 0:
            bonus = self.adjustments.risk_mitigation_value(node_id) / effort * w.risk_mitigation_bonus

        return base_score + bonus
