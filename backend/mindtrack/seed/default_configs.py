# seed/default_configs.py
"""
Configurations de scoring standard (seuils cliniques publiés).

    GAD-7  → questionnaire "gad7", somme 0–21
    PHQ-9  → questionnaire "phq9", somme 0–27

Chaque configuration n'est installée que si le questionnaire n'a pas
encore de configuration par défaut : relancer le seed est sans effet.

Usage :
    python -m mindtrack.seed.default_configs
    (ou SEED_DEFAULT_CONFIGS=true au démarrage de l'API)
"""
import asyncio
import logging
from typing import Dict, List

from sqlalchemy.ext.asyncio import AsyncSession

from mindtrack.core.database import SessionLocal
from mindtrack.core.logging import setup_logging
from mindtrack.core.config import settings
from mindtrack.engine.domain import ScoringConfiguration
from mindtrack.engine.scoring.engine import ScoringEngine
from mindtrack.modules.scoring.schemas import ScoringConfigIn
from mindtrack.modules.scoring.service import ScoringService

logger = logging.getLogger(__name__)

FREQUENCY_OPTIONS = ["Not at all", "Several days", "More than half the days", "Nearly every day"]
FREQUENCY_POINTS = [0, 1, 2, 3]

GAD7 = {
    "questionnaire_id": "gad7",
    "name": "GAD-7 Standard Scoring",
    "description": "Standard scoring configuration for GAD-7 questionnaire based on clinical guidelines",
    "scoring_method": "sum",
    "min_score": 0,
    "max_score": 21,
    "passing_score": 10,
    "visualization_type": "gauge",
    "is_default": True,
    "rules": [
        {
            "min_score": 0, "max_score": 4, "risk_level": "low",
            "label": "Minimal Anxiety", "color": "#10B981",
            "description": "Minimal anxiety symptoms that do not significantly impact daily functioning",
            "actions": ["No clinical intervention needed", "Continue monitoring", "Lifestyle recommendations"],
        },
        {
            "min_score": 5, "max_score": 9, "risk_level": "medium",
            "label": "Mild Anxiety", "color": "#F59E0B",
            "description": "Mild anxiety symptoms that may benefit from intervention",
            "actions": ["Consider counseling", "Lifestyle modifications", "Follow-up in 2-4 weeks"],
        },
        {
            "min_score": 10, "max_score": 14, "risk_level": "high",
            "label": "Moderate Anxiety", "color": "#EF4444",
            "description": "Moderate anxiety symptoms requiring clinical attention",
            "actions": ["Recommend therapy", "Consider medication evaluation", "Weekly follow-up"],
        },
        {
            "min_score": 15, "max_score": 21, "risk_level": "critical",
            "label": "Severe Anxiety", "color": "#DC2626",
            "description": "Severe anxiety symptoms requiring immediate clinical attention",
            "actions": ["Immediate clinical attention", "Comprehensive treatment plan", "Daily monitoring"],
        },
    ],
}

PHQ9 = {
    "questionnaire_id": "phq9",
    "name": "PHQ-9 Standard Scoring",
    "description": "Depression severity bands for the PHQ-9 screening questionnaire",
    "scoring_method": "sum",
    "min_score": 0,
    "max_score": 27,
    "passing_score": 10,
    "visualization_type": "gauge",
    "is_default": True,
    "rules": [
        {
            "min_score": 0, "max_score": 4, "risk_level": "low",
            "label": "Minimal Depression", "color": "#10B981",
            "actions": ["No clinical intervention needed", "Continue monitoring"],
        },
        {
            "min_score": 5, "max_score": 9, "risk_level": "medium",
            "label": "Mild Depression", "color": "#F59E0B",
            "actions": ["Watchful waiting", "Repeat PHQ-9 at follow-up"],
        },
        {
            "min_score": 10, "max_score": 14, "risk_level": "high",
            "label": "Moderate Depression", "color": "#F97316",
            "actions": ["Treatment plan", "Consider counseling or pharmacotherapy"],
        },
        {
            "min_score": 15, "max_score": 19, "risk_level": "high",
            "label": "Moderately Severe Depression", "color": "#EF4444",
            "actions": ["Active treatment with pharmacotherapy and/or psychotherapy"],
        },
        {
            "min_score": 20, "max_score": 27, "risk_level": "critical",
            "label": "Severe Depression", "color": "#DC2626",
            "actions": ["Immediate initiation of treatment", "Referral to mental health specialist"],
        },
    ],
}

DEFAULT_CONFIGS: List[Dict] = [GAD7, PHQ9]


def frequency_question(question_id: int, text: str) -> Dict:
    """Item GAD-7 / PHQ-9 : 4 fréquences notées 0–3."""
    return {
        "id": question_id,
        "type": "single_choice",
        "order": question_id,
        "text": text,
        "required": True,
        "options": list(FREQUENCY_OPTIONS),
        "metadata": {"scoring": {"points": list(FREQUENCY_POINTS)}},
    }


def register_default_configs(engine: ScoringEngine) -> None:
    """Enregistre GAD-7 / PHQ-9 dans un registre en mémoire (id = questionnaire_id)."""
    for data in DEFAULT_CONFIGS:
        engine.add_configuration(
            ScoringConfiguration.from_dict({"id": f"{data['questionnaire_id']}_standard", **data})
        )


async def seed(db: AsyncSession) -> int:
    service = ScoringService()
    created = 0
    for data in DEFAULT_CONFIGS:
        if await service.get_default_configuration(db, data["questionnaire_id"]):
            continue
        await service.create_configuration(db, ScoringConfigIn(**data), created_by="seed")
        created += 1
    logger.info("DEFAULT_CONFIGS_SEEDED", extra={"created_count": created})
    return created


async def main():
    setup_logging(settings.LOG_LEVEL)
    async with SessionLocal() as db:
        await seed(db)


if __name__ == "__main__":
    asyncio.run(main())
