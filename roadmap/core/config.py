import os
from pathlib import Path
from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional, Dict, Any, Callable

load_dotenv()


class EnvConfig:
    """Small helper for reading and casting environment variables.

    Usage: EnvConfig.get('ROADMAP_INFLUENCE_DAMPING', cast=float, aliases=['INFLUENCE_DAMPING'])
    """

    @staticmethod
    def get(name: str, default: Any = None, cast: Optional[Callable] = None, aliases: Optional[list] = None):
        aliases = aliases or []
        for key in (name, *aliases):
            val = os.getenv(key)
            if val is not None:
                if cast is not None:
                    try:
                        return cast(val)
                    except Exception as exc:  # keep error explicit
                        raise ValueError(f"Invalid value for {key}: {exc}")
                return val
        return default


# Default priority weights (additive; not required to sum to 1.0)
DEFAULT_PRIORITY_WEIGHTS = {
    'readiness': 0.30,
    'influence': 0.15,
    'leverage': 0.20,
    'safety_factor': 0.15,
    'blocking_score': 0.20,
    'risk_mitigation_bonus': 0.50,
}


@dataclass
class BaseConfig:
    """Mixin-like helper for dataclasses that load from envs and validate."""

    @classmethod
    def _env(cls, name: str, default: Any = None, cast: Optional[Callable] = None, aliases: Optional[list] = None):
        return EnvConfig.get(name, default=default, cast=cast, aliases=aliases)

    def validate(self, required: bool = True):
        """Default no-op; override in subclasses with required flag."""
        return None


@dataclass
class PriorityWeightsConfig(BaseConfig):
    readiness: Optional[float] = None
    influence: Optional[float] = None
    leverage: Optional[float] = None
    safety_factor: Optional[float] = None
    blocking_score: Optional[float] = None
    risk_mitigation_bonus: Optional[float] = None

    def __post_init__(self):
        # Explicit constructor values win; otherwise env, then defaults
        env_names = {
            'readiness': 'ROADMAP_WEIGHT_READINESS',
            'influence': 'ROADMAP_WEIGHT_INFLUENCE',
            'leverage': 'ROADMAP_WEIGHT_LEVERAGE',
            'safety_factor': 'ROADMAP_WEIGHT_SAFETY',
            'blocking_score': 'ROADMAP_WEIGHT_BLOCKING',
            'risk_mitigation_bonus': 'ROADMAP_WEIGHT_RISK_MITIGATION',
        }
        for attr, env_name in env_names.items():
            if getattr(self, attr) is None:
                setattr(self, attr, self._env(env_name, default=DEFAULT_PRIORITY_WEIGHTS[attr], cast=float))

    def validate(self, required: bool = True) -> None:
        for name, value in self.as_dict().items():
            if value < 0:
                raise ValueError(f'priority weight {name} must be >= 0')

    def as_dict(self) -> Dict[str, float]:
        return {name: getattr(self, name) for name in DEFAULT_PRIORITY_WEIGHTS}


@dataclass
class InfluenceConfig(BaseConfig):
    iterations: int = 20
    damping: float = 0.85

    def __post_init__(self):
        # Respect explicit constructor values: only consult env vars when using the dataclass defaults
        if self.iterations == InfluenceConfig.iterations:
            self.iterations = self._env('ROADMAP_INFLUENCE_ITERATIONS', default=self.iterations, cast=int)
        if self.damping == InfluenceConfig.damping:
            self.damping = self._env('ROADMAP_INFLUENCE_DAMPING', default=self.damping, cast=float)

    def validate(self, required: bool = True) -> None:
        if self.iterations < 1:
            raise ValueError('iterations must be >= 1')
        if not 0 <= self.damping <= 1:
            raise ValueError('damping must be between 0 and 1')


@dataclass
class SimulationConfig(BaseConfig):
    risk_epsilon: float = 0.01  # absorbs floating-point noise in risk deltas

    def __post_init__(self):
        if self.risk_epsilon == SimulationConfig.risk_epsilon:
            self.risk_epsilon = self._env('ROADMAP_RISK_EPSILON', default=self.risk_epsilon, cast=float)

    def validate(self, required: bool = True) -> None:
        if self.risk_epsilon < 0:
            raise ValueError('risk_epsilon must be >= 0')


@dataclass
class CacheConfig(BaseConfig):
    cache_path: Optional[Path] = None

    def __post_init__(self):
        if self.cache_path is None:
            path = self._env('ROADMAP_DESCENDANT_CACHE', aliases=['DESCENDANT_CACHE_PATH'])
            self.cache_path = Path(path) if path else None
        else:
            self.cache_path = Path(self.cache_path)

    @property
    def enabled(self) -> bool:
        return self.cache_path is not None

    def validate(self, required: bool = True) -> None:
        if required and self.cache_path is None:
            raise ValueError('ROADMAP_DESCENDANT_CACHE not set. Set via environment or CacheConfig.cache_path')
        if self.cache_path is not None and self.cache_path.exists() and self.cache_path.is_dir():
            raise ValueError(f'cache_path {self.cache_path} is a directory')


class AppConfig:
    """Central application configuration container.

    Access sub-configs as attributes (e.g., `AppConfig.weights`).
    Use `AppConfig.from_env()` for a validated instance reflecting the
    current environment.
    """

    weights: PriorityWeightsConfig = PriorityWeightsConfig()
    influence: InfluenceConfig = InfluenceConfig()
    simulation: SimulationConfig = SimulationConfig()
    cache: CacheConfig = CacheConfig()

    def validate_all(self, strict: bool = False) -> None:
        self.weights.validate()
        self.influence.validate()
        self.simulation.validate()
        self.cache.validate(required=strict)

    @staticmethod
    def check_availability() -> Dict[str, Dict[str, Any]]:
        """Return availability map for each config.

        For each named sub-config return a dict with keys:
        - available: bool
        - reason: Optional[str] explaining failure when available is False
        """
        results: Dict[str, Dict[str, Any]] = {}
        # Construct fresh instances so availability reflects current environment
        configs = {
            'weights': PriorityWeightsConfig(),
            'influence': InfluenceConfig(),
            'simulation': SimulationConfig(),
            'cache': CacheConfig(),
        }
        for name, cfg in configs.items():
            try:
                cfg.validate(required=True)
                results[name] = {'available': True, 'reason': None}
            except Exception as e:
                results[name] = {'available': False, 'reason': str(e)}
        return results

    @staticmethod
    def from_env(strict: bool = False) -> 'AppConfig':
        config = AppConfig()
        config.weights = PriorityWeightsConfig()
        config.influence = InfluenceConfig()
        config.simulation = SimulationConfig()
        config.cache = CacheConfig()
        config.validate_all(strict=strict)
        return config
