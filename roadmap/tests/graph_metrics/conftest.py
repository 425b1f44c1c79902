"""Shared test fixtures for graph metrics tests."""
import copy
import pytest

from roadmap.core.config import AppConfig
from roadmap.core.types import GraphDocument
from roadmap.orchestration.roadmap_engine import RoadmapEngine

ROADMAP_ENV_VARS = [
    'ROADMAP_WEIGHT_READINESS',
    'ROADMAP_WEIGHT_INFLUENCE',
    'ROADMAP_WEIGHT_LEVERAGE',
    'ROADMAP_WEIGHT_SAFETY',
    'ROADMAP_WEIGHT_BLOCKING',
    'ROADMAP_WEIGHT_RISK_MITIGATION',
    'ROADMAP_INFLUENCE_ITERATIONS',
    'ROADMAP_INFLUENCE_DAMPING',
    'ROADMAP_RISK_EPSILON',
    'ROADMAP_DESCENDANT_CACHE',
    'DESCENDANT_CACHE_PATH',
]

META = {"version": "1.0", "title": "Test Roadmap", "generatedAt": "2026-01-15T09:00:00Z"}


def solution(id, parent, effort, risk=0.0, uncertainty=0.0, **extra):
    node = {"id": id, "type": "solution", "title": id.title(), "parentId": parent,
            "baseEffort": effort, "baseRisk": risk, "baseUncertainty": uncertainty}
    node.update(extra)
    return node


def edge(id, source, target, type, **extra):
    data = {"id": id, "source": source, "target": target, "type": type}
    data.update(extra)
    return data


def document_dict(nodes, edges):
    return {"meta": dict(META), "nodes": nodes, "edges": edges}


SAMPLE_ROADMAP = document_dict(
    nodes=[
        {"id": "pillar-reliability", "type": "pillar", "title": "Reliability"},
        {"id": "pillar-growth", "type": "pillar", "title": "Growth"},
        {"id": "init-observability", "type": "initiative", "title": "Observability", "parentId": "pillar-reliability"},
        {"id": "init-deploys", "type": "initiative", "title": "Safe deploys", "parentId": "pillar-reliability"},
        {"id": "init-onboarding", "type": "initiative", "title": "Onboarding", "parentId": "pillar-growth"},
        {"id": "prob-blind-spots", "type": "problem", "title": "Blind spots", "parentId": "init-observability"},
        {"id": "prob-rollbacks", "type": "problem", "title": "Slow rollbacks", "parentId": "init-deploys"},
        {"id": "prob-signup", "type": "problem", "title": "Signup drop-off", "parentId": "init-onboarding"},
        solution("sol-tracing", "prob-blind-spots", 8, 0.3, 0.4),
        solution("sol-alerting", "prob-blind-spots", 3, 0.1, 0.1),
        solution("sol-canary", "prob-rollbacks", 13, 0.6, 0.5),
        solution("sol-flags", "prob-rollbacks", 5, 0.2, 0.2),
        solution("sol-wizard", "prob-signup", 8, 0.5, 0.3),
        solution("sol-funnel", "prob-signup", 2, 0.0, 0.0),
    ],
    edges=[
        edge("e1", "sol-alerting", "sol-tracing", "DEPENDS_ON"),
        edge("e2", "sol-canary", "sol-alerting", "DEPENDS_ON"),
        edge("e3", "sol-canary", "sol-flags", "DEPENDS_ON"),
        edge("e4", "sol-flags", "sol-canary", "FACILITATES", factor=0.3, annotation="flags target cohorts"),
        edge("e5", "sol-tracing", "sol-canary", "DERISKS", factor=0.5),
        edge("e6", "sol-funnel", "sol-wizard", "INFORMS", factor=0.6),
        edge("e7", "sol-wizard", "sol-flags", "DEPENDS_ON"),
        edge("e8", "sol-funnel", "sol-tracing", "RELATES_TO"),
        edge("e9", "init-onboarding", "init-deploys", "NEEDS_COORDINATION"),
    ],
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove roadmap env overrides so defaults apply."""
    for name in ROADMAP_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def app_config(clean_env):
    """Default configuration with persistence disabled."""
    return AppConfig.from_env()


@pytest.fixture
def sample_dict():
    """Raw camelCase sample roadmap (fresh copy per test)."""
    return copy.deepcopy(SAMPLE_ROADMAP)


@pytest.fixture
def sample_document(sample_dict):
    return GraphDocument.from_dict(sample_dict)


@pytest.fixture
def sample_engine(sample_document, app_config):
    return RoadmapEngine(sample_document, config=app_config)


@pytest.fixture
def build_engine(app_config):
    """Factory: build an engine from node and edge dicts."""
    def _build(nodes, edges=None):
        return RoadmapEngine(GraphDocument.from_dict(document_dict(nodes, edges or [])), config=app_config)
    return _build
