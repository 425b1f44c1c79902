"""Tests for TopologyCalculator."""


def sol(id, effort=1):
    return {"id": id, "type": "solution", "title": id, "baseEffort": effort, "baseRisk": 0.0, "baseUncertainty": 0.0}


def dep(id, source, target):
    return {"id": id, "source": source, "target": target, "type": "DEPENDS_ON"}


class TestTopologyCalculator:
    """Test suite for TopologyCalculator."""

    def test_levels(self, sample_engine):
        levels = sample_engine.compute_topological_levels()

        assert levels['sol-tracing'] == 0
        assert levels['sol-flags'] == 0
        assert levels['pillar-growth'] == 0
        assert levels['sol-alerting'] == 1
        assert levels['sol-wizard'] == 1
        assert levels['sol-canary'] == 2

    def test_cycle_terminates_with_shared_level(self, build_engine):
        engine = build_engine([sol('a'), sol('b'), sol('c')], [dep('d1', 'a', 'b'), dep('d2', 'b', 'a')])

        levels = engine.compute_topological_levels()

        assert levels['c'] == 0
        assert levels['a'] == levels['b'] == 1

    def test_find_cycles(self, build_engine):
        engine = build_engine([sol('a'), sol('b')], [dep('d1', 'a', 'b'), dep('d2', 'b', 'a')])

        cycles = engine.find_cycles()

        assert cycles == [['a', 'b', 'a']]

    def test_acyclic_graph_has_no_cycles(self, sample_engine):
        assert sample_engine.find_cycles() == []

    def test_cycle_slice_starts_at_revisited_node(self, build_engine):
        engine = build_engine(
            [sol('a'), sol('b'), sol('c')],
            [dep('d1', 'a', 'b'), dep('d2', 'b', 'c'), dep('d3', 'c', 'b')],
        )
        assert engine.find_cycles() == [['b', 'c', 'b']]

    def test_critical_path_follows_dependents(self, build_engine):
        """a <- b <- c chain (3 + 5 + 2) beats standalone d (9)."""
        engine = build_engine(
            [sol('a', 3), sol('b', 5), sol('c', 2), sol('d', 9)],
            [dep('d1', 'b', 'a'), dep('d2', 'c', 'b')],
        )

        result = engine.find_critical_path()

        assert result.path == ['a', 'b', 'c']
        assert result.total_effort == 10

    def test_critical_path_tie_keeps_first_in_level_order(self, build_engine):
        engine = build_engine(
            [sol('a', 3), sol('b', 5), sol('c', 2), sol('d', 10)],
            [dep('d1', 'b', 'a'), dep('d2', 'c', 'b')],
        )

        result = engine.find_critical_path()

        assert result.path == ['d']
        assert result.total_effort == 10

    def test_critical_path_empty_graph(self, build_engine):
        result = build_engine([]).find_critical_path()
        assert result.path == []
        assert result.total_effort == 0

    def test_critical_path_all_zero_effort(self, build_engine):
        result = build_engine([sol('b', 0), sol('a', 0)]).find_critical_path()
        assert result.path == ['a']
        assert result.total_effort == 0

    def test_critical_path_on_cycle_terminates(self, build_engine):
        engine = build_engine([sol('a', 2), sol('b', 3)], [dep('d1', 'a', 'b'), dep('d2', 'b', 'a')])
        result = engine.find_critical_path()
        assert result.total_effort > 0
        assert len(result.path) == len(set(result.path))

    def test_clusters(self, sample_engine):
        assert sample_engine.find_clusters() == {'cluster-0': ['sol-tracing', 'sol-funnel']}

    def test_clusters_drop_singletons_and_label_in_order(self, build_engine):
        rel = lambda i, s, t: {"id": i, "source": s, "target": t, "type": "RELATES_TO"}
        engine = build_engine(
            [sol('a'), sol('b'), sol('c'), sol('d'), sol('e')],
            [rel('r1', 'd', 'c'), rel('r2', 'a', 'e')],
        )
        assert engine.find_clusters() == {'cluster-0': ['a', 'e'], 'cluster-1': ['c', 'd']}
