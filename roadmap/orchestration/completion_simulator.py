import logging
import pandas as pd
from datetime import datetime
from typing import Iterable, List, Optional, Tuple

from roadmap.calculators.adjustment_calculator import AdjustmentCalculator
from roadmap.calculators.dependency_resolver import DependencyResolver
from roadmap.core.config import SimulationConfig
from roadmap.core.graph_state import GraphState
from roadmap.core.metric_types import (
    CompletionImpact, EffortReduction, GraphSnapshot, ReadyNode, RiskReduction, SequenceResult,
)
from roadmap.core.types import EDGE_DEPENDS_ON, EDGE_FACILITATES, EDGE_DERISKS, NODE_TYPE_SOLUTION

logger = logging.getLogger(__name__)


class CompletionSimulator:
    """Mutates and restores completion state and reports what each completion changes.

    Completion never cascades: marking a node done does not complete its
    children or dependents. Snapshots are appended to an in-memory history
    that callers can read but not modify.
    """

    DEFAULT_RISK_EPSILON = 0.01

    def __init__(
        self,
        state: GraphState,
        resolver: Optional[DependencyResolver] = None,
        adjustments: Optional[AdjustmentCalculator] = None,
        config: Optional[SimulationConfig] = None,
        history: Iterable[GraphSnapshot] = (),
    ):
        self.state = state
        self.resolver = resolver or DependencyResolver(state)
        self.adjustments = adjustments or AdjustmentCalculator(state)
        self.risk_epsilon = config.risk_epsilon if config else self.DEFAULT_RISK_EPSILON
        self._history: List[GraphSnapshot] = list(history)

    # --- state transitions ---

    def mark_completed(self, node_id: str) -> CompletionImpact:
        """Complete a node and return its impact. Raises NodeNotFoundError for unknown ids."""
        self.state.require_node(node_id)
        impact = self._complete_and_measure(node_id)
        logger.info(
            "Marked %s completed", node_id,
            extra={
                "node_id": node_id,
                "now_ready": len(impact.now_ready),
                "effort_saved": impact.total_effort_saved,
            },
        )
        return impact

    def mark_incomplete(self, node_id: str) -> None:
        """Reopen a node (status back to backlog). Raises NodeNotFoundError for unknown ids."""
        self.state.set_completed(node_id, False)
        logger.info("Marked %s incomplete", node_id, extra={"node_id": node_id})

    def preview_completion(self, node_id: str) -> CompletionImpact:
        """Impact of completing `node_id` with the completion state left exactly as it was."""
        self.state.require_node(node_id)
        saved_completed = set(self.state.completed)
        saved_statuses = dict(self.state.statuses)
        try:
            return self._complete_and_measure(node_id)
        finally:
            self.state.completed = saved_completed
            self.state.statuses = saved_statuses

    def _complete_and_measure(self, node_id: str) -> CompletionImpact:
        node = self.state.require_node(node_id)
        facilitates = self.state.outgoing(node_id, EDGE_FACILITATES)
        derisks = self.state.outgoing(node_id, EDGE_DERISKS)

        dependents: List[str] = []
        for edge in self.state.incoming(node_id, EDGE_DEPENDS_ON):
            if edge.source not in dependents:
                dependents.append(edge.source)

        before_effort = {e.target: self.adjustments.effective_effort(e.target) for e in facilitates}
        before_risk = {e.target: self.adjustments.adjusted_risk(e.target) for e in derisks}
        was_ready = {d: self.resolver.is_ready(d) for d in dependents}

        self.state.set_completed(node_id, True)

        impact = CompletionImpact(node_id=node_id, node_title=node.title)

        for dependent_id in dependents:
            if self.state.is_completed(dependent_id) or was_ready[dependent_id]:
                continue
            if self.resolver.is_ready(dependent_id):
                impact.now_ready.append(ReadyNode(
                    id=dependent_id,
                    title=self.state.nodes[dependent_id].title,
                    effort=self.adjustments.effective_effort(dependent_id),
                ))

        for edge in facilitates:
            target = edge.target
            if self.state.is_completed(target) or not self.state.has_node(target):
                continue
            old_effort = before_effort[target]
            new_effort = self.adjustments.effective_effort(target)
            if new_effort < old_effort:
                impact.effort_reductions.append(EffortReduction(
                    id=target,
                    title=self.state.nodes[target].title,
                    old_effort=old_effort,
                    new_effort=new_effort,
                    reason=edge.annotation,
                ))

        for edge in derisks:
            target = edge.target
            if self.state.is_completed(target) or not self.state.has_node(target):
                continue
            old_risk = before_risk[target]
            new_risk = self.adjustments.adjusted_risk(target)
            if new_risk < old_risk - self.risk_epsilon:
                impact.risk_reductions.append(RiskReduction(
                    id=target,
                    title=self.state.nodes[target].title,
                    old_risk=old_risk,
                    new_risk=new_risk,
                    effort=self.adjustments.effective_effort(target),
                ))

        impact.total_effort_unblocked = sum(r.effort for r in impact.now_ready)
        impact.total_effort_saved = sum(r.saved for r in impact.effort_reductions)
        impact.total_risk_reduced = sum((r.old_risk - r.new_risk) * r.effort for r in impact.risk_reductions)
        return impact

    # --- snapshots ---

    def take_snapshot(self) -> GraphSnapshot:
        total = ready = blocked = 0
        for node in self.state.nodes_of_type(NODE_TYPE_SOLUTION):
            if self.state.is_completed(node.id):
                continue
            effort = self.adjustments.effective_effort(node.id)
            total += effort
            if self.resolver.is_ready(node.id):
                ready += effort
            else:
                blocked += effort

        snapshot = GraphSnapshot(
            timestamp=datetime.now(),
            completed_nodes=frozenset(self.state.completed),
            total_remaining_effort=total,
            ready_effort=ready,
            blocked_effort=blocked,
        )
        self._history.append(snapshot)
        logger.debug("Took snapshot", extra={"remaining": total, "ready": ready, "blocked": blocked})
        return snapshot

    @property
    def history(self) -> Tuple[GraphSnapshot, ...]:
        return tuple(self._history)

    def history_frame(self) -> pd.DataFrame:
        """Snapshot history as a DataFrame indexed by timestamp."""
        columns = ["timestamp", "completed_count", "total_remaining_effort", "ready_effort", "blocked_effort"]
        if not self._history:
            return pd.DataFrame(columns=columns).set_index("timestamp")
        df = pd.DataFrame([s.to_dict() for s in self._history], columns=columns)
        df["timestamp"] = pd.to_datetime(df["timestamp"])
        return df.set_index("timestamp")

    # --- sequences ---

    def simulate_sequence(self, node_ids: Iterable[str]) -> SequenceResult:
        """Complete nodes in order between two snapshots; unknown and already-done ids are skipped."""
        initial = self.take_snapshot()
        impacts: List[CompletionImpact] = []
        not_found: List[str] = []
        already_completed: List[str] = []

        for node_id in node_ids:
            if not self.state.has_node(node_id):
                logger.warning("Skipping unknown node in completion sequence: %s", node_id)
                not_found.append(node_id)
                continue
            if self.state.is_completed(node_id):
                logger.warning("Skipping already completed node in sequence: %s", node_id)
                already_completed.append(node_id)
                continue
            impacts.append(self.mark_completed(node_id))

        final = self.take_snapshot()
        return SequenceResult(
            initial_snapshot=initial,
            final_snapshot=final,
            impacts=impacts,
            not_found=not_found,
            already_completed=already_completed,
        )
