import logging
from typing import List, Optional

from roadmap.core.metric_types import InitiativePlan, NodeMetrics, PlanOfAttack, ProblemPlan
from roadmap.core.types import NODE_TYPE_INITIATIVE, NODE_TYPE_PROBLEM, NODE_TYPE_SOLUTION, STATUS_DONE
from roadmap.orchestration.roadmap_engine import RoadmapEngine

logger = logging.getLogger(__name__)


class PlanGenerator:
    """Turns the metrics table into actionable shortlists and a capacity-bounded plan.

    Works on one metrics snapshot per call; call again after completing
    nodes to get updated priorities.
    """

    TOP_PRIORITY_LIMIT = 5
    SHORTLIST_LIMIT = 5
    QUICK_WIN_MAX_EFFORT = 3
    QUICK_WIN_MIN_PRIORITY = 0.4
    CRITICAL_RISK_MAX_SAFETY = 0.5
    CRITICAL_RISK_MIN_PRIORITY = 0.6

    def __init__(self, engine: RoadmapEngine):
        self.engine = engine

    def _actionable_solutions(self, metrics: List[NodeMetrics]) -> List[NodeMetrics]:
        """Open solutions, highest priority first."""
        open_solutions = [
            m for m in metrics
            if m.type == NODE_TYPE_SOLUTION and self.engine.get_status(m.id) != STATUS_DONE
        ]
        return sorted(open_solutions, key=lambda m: -m.priority_score)

    def build_plan_of_attack(self, metrics: Optional[List[NodeMetrics]] = None) -> PlanOfAttack:
        metrics = metrics if metrics is not None else self.engine.compute_all_metrics()
        actionable = self._actionable_solutions(metrics)
        if not actionable:
            logger.info("No open solutions left to plan")
            return PlanOfAttack()

        quick_wins = [
            m for m in actionable
            if m.direct_effort <= self.QUICK_WIN_MAX_EFFORT and m.priority_score > self.QUICK_WIN_MIN_PRIORITY
        ]
        critical_risks = [
            m for m in actionable
            if m.safety_factor < self.CRITICAL_RISK_MAX_SAFETY and m.priority_score > self.CRITICAL_RISK_MIN_PRIORITY
        ]

        critical_path = self.engine.find_critical_path()
        open_path = [n for n in critical_path.path if self.engine.get_status(n) != STATUS_DONE]

        return PlanOfAttack(
            top_priorities=actionable[:self.TOP_PRIORITY_LIMIT],
            quick_wins=quick_wins[:self.SHORTLIST_LIMIT],
            critical_risks=critical_risks[:self.SHORTLIST_LIMIT],
            critical_path=open_path,
            critical_path_effort=critical_path.total_effort,
        )

    def rank_initiatives(self, metrics: Optional[List[NodeMetrics]] = None) -> List[NodeMetrics]:
        """Most weighted blocking first, then fewest dependencies, then least total effort."""
        metrics = metrics if metrics is not None else self.engine.compute_all_metrics()
        initiatives = [m for m in metrics if m.type == NODE_TYPE_INITIATIVE]
        return sorted(initiatives, key=lambda m: (-m.weighted_blocking_count, m.depends_on_count, m.total_effort))

    def build_capacity_plan(
        self,
        max_initiatives: int = 2,
        max_problems: int = 3,
        metrics: Optional[List[NodeMetrics]] = None,
    ) -> List[InitiativePlan]:
        """Pick initiatives, their most unblocking ready problems, and a first solution per problem."""
        metrics = metrics if metrics is not None else self.engine.compute_all_metrics()
        initiatives = sorted(
            (m for m in metrics if m.type == NODE_TYPE_INITIATIVE),
            key=lambda m: (-m.weighted_blocking_count, m.depends_on_count),
        )

        plans: List[InitiativePlan] = []
        for initiative in initiatives[:max_initiatives]:
            cross_cutting = initiative.cross_cutting_edges or []
            other_ends = {e.target if e.source == initiative.id else e.source for e in cross_cutting}

            problems = sorted(
                (m for m in metrics if m.type == NODE_TYPE_PROBLEM and self._parent_of(m.id) == initiative.id),
                key=lambda m: (-(m.weighted_blocking_count * m.readiness), m.depends_on_count),
            )

            problem_plans = []
            for problem in problems[:max_problems]:
                solutions = sorted(
                    (m for m in metrics if m.type == NODE_TYPE_SOLUTION and self._parent_of(m.id) == problem.id),
                    key=lambda m: -m.priority_score,
                )
                problem_plans.append(ProblemPlan(problem=problem, start_with=solutions[0] if solutions else None))

            plans.append(InitiativePlan(
                initiative=initiative,
                cross_pillar_count=len(other_ends),
                problems=problem_plans,
            ))

        logger.debug("Built capacity plan", extra={"initiatives": len(plans)})
        return plans

    def _parent_of(self, node_id: str) -> Optional[str]:
        node = self.engine.get_node(node_id)
        return node.parent_id if node else None
