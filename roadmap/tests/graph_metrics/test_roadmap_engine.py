"""Tests for RoadmapEngine."""
import pytest
from unittest.mock import Mock

from roadmap.core.config import AppConfig, CacheConfig
from roadmap.core.types import GraphDocument
from roadmap.orchestration.roadmap_engine import RoadmapEngine
from roadmap.services.descendant_cache import DescendantCacheStore


class TestRoadmapEngine:
    """Test suite for RoadmapEngine."""

    def test_initialization(self, sample_engine, sample_document):
        assert len(sample_engine.get_all_nodes()) == 14
        assert sample_engine.completed_nodes == frozenset()
        assert sample_engine.get_node('sol-canary').title == 'Sol-Canary'
        assert [n.id for n in sample_engine.get_nodes_by_type('pillar')] == ['pillar-reliability', 'pillar-growth']
        assert sample_engine.get_descendants('prob-signup') == ('sol-wizard', 'sol-funnel')

    def test_done_status_seeds_completed_set(self, sample_dict, app_config):
        sample_dict['nodes'][-1]['status'] = 'done'
        engine = RoadmapEngine(GraphDocument.from_dict(sample_dict), config=app_config)

        assert engine.completed_nodes == frozenset({'sol-funnel'})
        assert engine.get_adjusted_uncertainty('sol-wizard') == pytest.approx(0.12)

    def test_input_nodes_are_not_mutated(self, sample_engine, sample_document):
        sample_engine.mark_completed('sol-flags')
        node = next(n for n in sample_document.nodes if n.id == 'sol-flags')
        assert node.status == 'backlog'
        assert sample_engine.get_status('sol-flags') == 'done'

    def test_degrees(self, sample_engine):
        assert sample_engine.get_in_degree('sol-canary') == 2
        assert sample_engine.get_out_degree('sol-canary') == 2
        assert sample_engine.get_out_degree('sol-funnel') == 2

    def test_compute_all_metrics(self, sample_engine):
        metrics = {m.id: m for m in sample_engine.compute_all_metrics()}

        assert list(metrics)[0] == 'pillar-reliability'
        canary = metrics['sol-canary']
        assert canary.depends_on_count == 2
        assert canary.direct_effort == 13
        assert canary.total_effort == 13
        assert canary.adjusted_effort == pytest.approx(13 * 1.5)
        assert canary.base_risk == pytest.approx(0.6)
        assert canary.topo_level == 2
        assert canary.cross_cutting_edges is None

        problem = metrics['prob-rollbacks']
        assert problem.total_effort == 18
        assert problem.depends_on_count == 1
        assert [e.target for e in problem.cross_cutting_edges] == ['prob-rollbacks', 'prob-blind-spots', 'prob-rollbacks']

        assert max(m.influence_score for m in metrics.values()) == pytest.approx(1.0)

    def test_metrics_match_individual_queries(self, sample_engine):
        influence = sample_engine.compute_influence_scores()
        for m in sample_engine.compute_all_metrics():
            assert m.priority_score == pytest.approx(sample_engine.compute_priority_score(m.id, influence))
            assert m.leverage == pytest.approx(sample_engine.compute_leverage(m.id))
            assert m.total_effort == sample_engine.get_total_effort(m.id)

    def test_metrics_frame(self, sample_engine):
        frame = sample_engine.metrics_frame()

        assert frame.index.name == 'id'
        assert len(frame) == 14
        assert frame.loc['sol-flags', 'weighted_blocking_count'] == 2
        assert frame.loc['pillar-growth', 'cross_cutting_count'] == 3
        assert frame.loc['sol-flags', 'cross_cutting_count'] == 0

    def test_metrics_frame_empty_graph(self, build_engine):
        assert build_engine([]).metrics_frame().empty

    def test_graph_summary(self, sample_engine):
        summary = sample_engine.get_graph_summary()

        assert summary['nodes_by_type'] == {'pillar': 2, 'initiative': 3, 'problem': 3, 'solution': 6}
        assert summary['edge_count'] == 9
        assert summary['edges_by_type']['DEPENDS_ON'] == 4
        assert summary['total_effort'] == 39
        assert summary['high_risk_solutions'] == 2
        assert summary['high_risk_effort'] == 21
        assert summary['average_risk'] == pytest.approx(1.7 / 6)
        assert summary['risky_effort_ratio'] == pytest.approx(21 / 39)

    def test_graph_summary_without_solutions(self, build_engine):
        summary = build_engine([{"id": "p", "type": "pillar", "title": "p"}]).get_graph_summary()
        assert summary['average_risk'] == 0.0
        assert summary['risky_effort_ratio'] == 0.0

    def test_clone_is_independent(self, sample_engine):
        sample_engine.take_snapshot()
        other = sample_engine.clone()

        other.mark_completed('sol-flags')
        other.take_snapshot()

        assert other.is_completed('sol-flags')
        assert not sample_engine.is_completed('sol-flags')
        assert sample_engine.get_effective_effort('sol-canary') == 13
        assert other.get_effective_effort('sol-canary') == 9
        assert len(sample_engine.history) == 1
        assert len(other.history) == 2
        assert other.get_descendants('pillar-growth') == sample_engine.get_descendants('pillar-growth')

    def test_uses_cache_store(self, sample_document, app_config):
        store = Mock(spec=DescendantCacheStore)
        store.load.return_value = None

        RoadmapEngine(sample_document, config=app_config, cache_store=store)

        fingerprint = DescendantCacheStore.fingerprint(sample_document.nodes)
        store.load.assert_called_once_with(fingerprint)
        saved_fingerprint, saved = store.save.call_args[0]
        assert saved_fingerprint == fingerprint
        assert saved['prob-signup'] == ['sol-wizard', 'sol-funnel']

    def test_cached_descendants_are_used(self, sample_document, app_config):
        store = Mock(spec=DescendantCacheStore)
        descendants = {n.id: [] for n in sample_document.nodes}
        descendants['prob-signup'] = ['sol-funnel']
        store.load.return_value = descendants

        engine = RoadmapEngine(sample_document, config=app_config, cache_store=store)

        assert engine.get_descendants('prob-signup') == ('sol-funnel',)
        store.save.assert_not_called()

    def test_incomplete_cache_is_recomputed(self, sample_document, app_config):
        store = Mock(spec=DescendantCacheStore)
        store.load.return_value = {'pillar-growth': []}

        engine = RoadmapEngine(sample_document, config=app_config, cache_store=store)

        assert engine.get_descendants('prob-signup') == ('sol-wizard', 'sol-funnel')
        store.save.assert_called_once()

    def test_cache_path_from_config(self, sample_document, clean_env, tmp_path):
        config = AppConfig.from_env()
        config.cache = CacheConfig(cache_path=tmp_path / 'descendants.json')

        engine = RoadmapEngine(sample_document, config=config)

        assert isinstance(engine.cache_store, DescendantCacheStore)
        assert (tmp_path / 'descendants.json').exists()

    def test_no_cache_without_path(self, sample_engine):
        assert sample_engine.cache_store is None
