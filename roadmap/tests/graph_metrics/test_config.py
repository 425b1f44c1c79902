"""Tests for the configuration layer."""
import pytest
from pathlib import Path

from roadmap.core.config import (
    AppConfig, CacheConfig, EnvConfig, InfluenceConfig, PriorityWeightsConfig, SimulationConfig,
    DEFAULT_PRIORITY_WEIGHTS,
)


class TestConfig:
    """Test suite for config dataclasses."""

    def test_default_weights(self, clean_env):
        assert PriorityWeightsConfig().as_dict() == DEFAULT_PRIORITY_WEIGHTS

    def test_weights_from_env(self, clean_env):
        clean_env.setenv('ROADMAP_WEIGHT_READINESS', '0.5')
        clean_env.setenv('ROADMAP_WEIGHT_RISK_MITIGATION', '1')

        weights = PriorityWeightsConfig()

        assert weights.readiness == 0.5
        assert weights.risk_mitigation_bonus == 1.0
        assert weights.leverage == 0.20

    def test_explicit_weight_wins_over_env(self, clean_env):
        clean_env.setenv('ROADMAP_WEIGHT_READINESS', '0.5')
        assert PriorityWeightsConfig(readiness=0.1).readiness == 0.1

    def test_negative_weight_rejected(self, clean_env):
        with pytest.raises(ValueError):
            PriorityWeightsConfig(leverage=-0.1).validate()

    def test_invalid_env_value(self, clean_env):
        clean_env.setenv('ROADMAP_WEIGHT_SAFETY', 'high')
        with pytest.raises(ValueError, match='ROADMAP_WEIGHT_SAFETY'):
            PriorityWeightsConfig()

    def test_env_aliases(self, clean_env):
        clean_env.setenv('OTHER_NAME', '7')
        assert EnvConfig.get('MISSING_NAME', cast=int, aliases=['OTHER_NAME']) == 7
        assert EnvConfig.get('MISSING_NAME', default='x') == 'x'

    def test_influence_config(self, clean_env):
        clean_env.setenv('ROADMAP_INFLUENCE_ITERATIONS', '50')
        config = InfluenceConfig()
        assert config.iterations == 50
        assert config.damping == 0.85
        assert InfluenceConfig(iterations=7).iterations == 7

    @pytest.mark.parametrize('kwargs', [{'iterations': 0}, {'damping': 1.5}, {'damping': -0.1}])
    def test_influence_validation(self, clean_env, kwargs):
        with pytest.raises(ValueError):
            InfluenceConfig(**kwargs).validate()

    def test_simulation_config(self, clean_env):
        assert SimulationConfig().risk_epsilon == 0.01
        with pytest.raises(ValueError):
            SimulationConfig(risk_epsilon=-1).validate()

    def test_cache_config(self, clean_env, tmp_path):
        assert not CacheConfig().enabled

        clean_env.setenv('ROADMAP_DESCENDANT_CACHE', str(tmp_path / 'c.json'))
        config = CacheConfig()

        assert config.enabled
        assert config.cache_path == Path(tmp_path / 'c.json')
        config.validate()

    def test_cache_config_required(self, clean_env, tmp_path):
        with pytest.raises(ValueError):
            CacheConfig().validate(required=True)
        CacheConfig().validate(required=False)
        with pytest.raises(ValueError):
            CacheConfig(cache_path=tmp_path).validate()

    def test_app_config_from_env(self, clean_env):
        config = AppConfig.from_env()
        assert config.influence.iterations == 20
        assert not config.cache.enabled

        with pytest.raises(ValueError):
            AppConfig.from_env(strict=True)

    def test_check_availability(self, clean_env):
        results = AppConfig.check_availability()
        assert results['weights'] == {'available': True, 'reason': None}
        assert results['cache']['available'] is False
        assert 'ROADMAP_DESCENDANT_CACHE' in results['cache']['reason']

    def test_no_module_level_debug_flag(self):
        import roadmap.core.config as config_module
        assert not hasattr(config_module, 'DEBUG')
