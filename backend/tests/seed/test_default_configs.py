# tests/seed/test_default_configs.py
"""
Tests pour seed.default_configs

Couverture :
    - GAD-7 / PHQ-9 valides (couverture des règles)
    - seed() n'installe que les questionnaires sans défaut
"""
import pytest
from unittest.mock import AsyncMock

from mindtrack.engine.domain import ScoringConfiguration
from mindtrack.engine.scoring.engine import validate_configuration
from mindtrack.seed.default_configs import DEFAULT_CONFIGS, seed
from tests.conftest import make_async_db, make_config

pytestmark = pytest.mark.service

SERVICE = "mindtrack.seed.default_configs.ScoringService"


@pytest.mark.parametrize("data", DEFAULT_CONFIGS, ids=lambda d: d["questionnaire_id"])
def test_configurations_valides(data):
    config = ScoringConfiguration.from_dict({"id": "seed", **data})
    assert validate_configuration(config) == []


@pytest.mark.asyncio
async def test_seed_ignore_les_questionnaires_deja_configures(mocker):
    mocker.patch(
        f"{SERVICE}.get_default_configuration",
        AsyncMock(side_effect=lambda db, qid: make_config() if qid == "gad7" else None),
    )
    mock_create = mocker.patch(f"{SERVICE}.create_configuration", AsyncMock())

    created = await seed(make_async_db())

    assert created == 1
    payload = mock_create.call_args.args[1]
    assert payload.questionnaire_id == "phq9"
    assert payload.is_default is True
    assert mock_create.call_args.kwargs["created_by"] == "seed"
