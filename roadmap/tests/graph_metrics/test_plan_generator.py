"""Tests for PlanGenerator."""
from roadmap.orchestration.plan_generator import PlanGenerator


class TestPlanGenerator:
    """Test suite for PlanGenerator."""

    def test_top_priorities_are_open_solutions_by_score(self, sample_engine):
        sample_engine.mark_completed('sol-funnel')
        plan = PlanGenerator(sample_engine).build_plan_of_attack()

        ids = [m.id for m in plan.top_priorities]
        scores = [m.priority_score for m in plan.top_priorities]
        assert len(ids) == 5
        assert 'sol-funnel' not in ids
        assert all(m.type == 'solution' for m in plan.top_priorities)
        assert scores == sorted(scores, reverse=True)
        assert not plan.is_complete

    def test_quick_wins_and_critical_risks_meet_thresholds(self, sample_engine):
        plan = PlanGenerator(sample_engine).build_plan_of_attack()

        assert 'sol-funnel' in [m.id for m in plan.quick_wins]
        assert all(m.direct_effort <= 3 and m.priority_score > 0.4 for m in plan.quick_wins)
        assert all(m.safety_factor < 0.5 and m.priority_score > 0.6 for m in plan.critical_risks)

    def test_critical_path_excludes_completed(self, sample_engine):
        sample_engine.mark_completed('sol-tracing')
        plan = PlanGenerator(sample_engine).build_plan_of_attack()
        critical = sample_engine.find_critical_path()

        assert plan.critical_path == [n for n in critical.path if not sample_engine.is_completed(n)]
        assert plan.critical_path_effort == critical.total_effort

    def test_plan_when_everything_is_done(self, sample_engine):
        for node in sample_engine.get_nodes_by_type('solution'):
            sample_engine.mark_completed(node.id)

        plan = PlanGenerator(sample_engine).build_plan_of_attack()

        assert plan.is_complete
        assert plan.quick_wins == []
        assert plan.critical_path == []

    def test_rank_initiatives(self, sample_engine):
        ranked = PlanGenerator(sample_engine).rank_initiatives()
        assert [m.id for m in ranked] == ['init-observability', 'init-onboarding', 'init-deploys']

    def test_capacity_plan(self, sample_engine):
        metrics = sample_engine.compute_all_metrics()
        by_id = {m.id: m for m in metrics}

        plans = PlanGenerator(sample_engine).build_capacity_plan(max_initiatives=2, max_problems=3, metrics=metrics)

        assert [p.initiative.id for p in plans] == ['init-observability', 'init-deploys']
        assert plans[0].cross_pillar_count == 2
        assert [pp.problem.id for pp in plans[0].problems] == ['prob-blind-spots']

        start = plans[0].problems[0].start_with
        candidates = [by_id['sol-tracing'], by_id['sol-alerting']]
        assert start.priority_score == max(m.priority_score for m in candidates)

    def test_capacity_plan_limits(self, sample_engine):
        plans = PlanGenerator(sample_engine).build_capacity_plan(max_initiatives=1, max_problems=0)
        assert len(plans) == 1
        assert plans[0].problems == []
