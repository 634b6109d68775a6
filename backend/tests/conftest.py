# tests/conftest.py
"""
Fixtures et factories partagées sur l'ensemble de la suite de tests.

Trois couches :
    1. Engine  — fonctions pures, aucun mock nécessaire (questions / réponses GAD-7)
    2. Service — mocks AsyncSession + repo via pytest-mock
    3. Router  — httpx.AsyncClient + dependency_overrides FastAPI
"""
import pytest
from types import SimpleNamespace
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from mindtrack.main import app
from mindtrack.core.database import get_db
from mindtrack.engine.domain import Answer, Question, ScoringConfiguration
from mindtrack.seed.default_configs import FREQUENCY_OPTIONS, GAD7, frequency_question

FIXED_NOW = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)


def fixed_clock() -> datetime:
    return FIXED_NOW


# ── GAD-7 (input principal des engines de scoring) ────────────────────────────

GAD7_ITEMS = [
    "Feeling nervous, anxious, or on edge",
    "Not being able to stop or control worrying",
    "Worrying too much about different things",
    "Trouble relaxing",
    "Being so restless that it's hard to sit still",
    "Becoming easily annoyed or irritable",
    "Feeling afraid as if something awful might happen",
]


def gad7_questions() -> list:
    """7 items single_choice, points 0–3 alignés sur les options."""
    return [Question.from_dict(frequency_question(i, text)) for i, text in enumerate(GAD7_ITEMS, start=1)]


def gad7_answers(*choices: int) -> list:
    """gad7_answers(1, 2, 1, 2, 1, 2, 2) → réponses par index d'option."""
    return [Answer(question_id=i, value=FREQUENCY_OPTIONS[c]) for i, c in enumerate(choices, start=1)]


def gad7_config(**kwargs) -> ScoringConfiguration:
    data = {"id": "gad7_standard", **GAD7}
    data.update(kwargs)
    return ScoringConfiguration.from_dict(data)


def make_question(**kwargs) -> Question:
    defaults = {"id": 1, "type": "text", "order": 1, "text": "Question", "required": False}
    defaults.update(kwargs)
    return Question.from_dict(defaults)


# ── Factories de modèles ORM (SimpleNamespace, sans ORM) ──────────────

def make_rule(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": "rule-1",
        "config_id": "cfg-1",
        "min_score": 0.0,
        "max_score": 21.0,
        "risk_level": "low",
        "label": "Minimal Anxiety",
        "description": None,
        "color": "#10B981",
        "actions": [],
        "order_num": 0,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_config(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": "cfg-1",
        "questionnaire_id": "gad7",
        "name": "GAD-7 Standard Scoring",
        "description": None,
        "scoring_method": "sum",
        "weights": {},
        "formula": None,
        "formula_variables": {},
        "min_score": 0.0,
        "max_score": 21.0,
        "passing_score": None,
        "visualization_type": "gauge",
        "visualization_config": {},
        "is_active": True,
        "is_default": False,
        "created_by": None,
        "created_at": datetime(2025, 1, 1),
        "updated_at": None,
        "rules": [
            make_rule(id="rule-1", min_score=0.0, max_score=4.0, risk_level="low",
                      label="Minimal Anxiety", color="#10B981"),
            make_rule(id="rule-2", min_score=5.0, max_score=9.0, risk_level="medium",
                      label="Mild Anxiety", color="#F59E0B", order_num=1),
            make_rule(id="rule-3", min_score=10.0, max_score=14.0, risk_level="high",
                      label="Moderate Anxiety", color="#EF4444", order_num=2),
            make_rule(id="rule-4", min_score=15.0, max_score=21.0, risk_level="critical",
                      label="Severe Anxiety", color="#DC2626", order_num=3),
        ],
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_category(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": "cat-1",
        "questionnaire_id": "gad7",
        "name": "Worry",
        "description": None,
        "weight": 1.0,
        "color": "#6B7280",
        "order": 0,
        "question_ids": [2, 3],
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


def make_calculated_score(**kwargs) -> SimpleNamespace:
    defaults = {
        "id": 1,
        "response_id": "resp-1",
        "config_id": "cfg-1",
        "questionnaire_id": "gad7",
        "total_score": 11.0,
        "normalized_score": 11.0,
        "percentage": 52.38,
        "risk_level": "high",
        "risk_label": "Moderate Anxiety",
        "risk_color": "#EF4444",
        "actions": ["Recommend therapy"],
        "category_scores": None,
        "visualization_data": {"score": 11.0, "zones": []},
        "calculated_at": FIXED_NOW,
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


# ── DB mock factory ───────────────────────────────────────────────────────────

def make_async_db() -> AsyncMock:
    """AsyncMock simulant une AsyncSession SQLAlchemy."""
    db = AsyncMock(spec=AsyncSession)
    db.add = MagicMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.close = AsyncMock()
    return db


# ── Fixtures HTTP (httpx.AsyncClient + dependency_overrides) ─────────────────

@pytest.fixture
async def client():
    """Client HTTP — le service est mocké test par test."""
    mock_db = AsyncMock(spec=AsyncSession)
    app.dependency_overrides[get_db] = lambda: mock_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
