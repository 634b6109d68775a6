# modules/scoring/service.py
"""
Store des configurations de scoring + orchestration du calcul.

Pipeline de calcul (calculate_score) :
    1. Chargement de la configuration (404 si inconnue)
    2. Logique conditionnelle → seules les questions visibles sont scorées
    3. ScoringEngine (pur) → ScoreResult
    4. Upsert du CalculatedScore (response_id, config_id)

Les erreurs métier sont des exceptions de shared/errors.py,
traduites en HTTP par le router.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from mindtrack.engine.domain import Response, ScoreResult, ScoringConfiguration, question_key
from mindtrack.engine.logic.conditional import ConditionalLogicEngine
from mindtrack.engine.scoring.analytics import compute_analytics
from mindtrack.engine.scoring.engine import ScoringEngine, validate_configuration
from mindtrack.modules.scoring.repository import ScoringRepository
from mindtrack.modules.scoring.schemas import (
    CalculateScoreIn,
    ScoreCategoryIn,
    ScoringConfigIn,
    ScoringConfigUpdate,
    ScoringRuleIn,
    ScoringRuleUpdate,
)
from mindtrack.shared.errors import (
    DefaultConfigNotFound,
    InvalidScoringConfiguration,
    ScoringConfigNotFound,
    ScoringRuleNotFound,
)

logger = logging.getLogger(__name__)

repo = ScoringRepository()

NULLABLE_FIELDS = ("description", "passing_score", "formula")

BLOCKING_ERRORS = ("Maximum score must be greater than minimum score",)


def _snapshot(db_obj) -> Dict:
    """État courant d'une configuration ORM, au format ScoringConfigIn."""
    return {
        "id":                db_obj.id,
        "questionnaire_id":  db_obj.questionnaire_id,
        "name":              db_obj.name,
        "description":       db_obj.description,
        "scoring_method":    db_obj.scoring_method,
        "min_score":         db_obj.min_score,
        "max_score":         db_obj.max_score,
        "passing_score":     db_obj.passing_score,
        "weights":           db_obj.weights or {},
        "formula":           db_obj.formula,
        "formula_variables": db_obj.formula_variables or {},
        "rules": [
            {
                "min_score":  r.min_score,
                "max_score":  r.max_score,
                "risk_level": r.risk_level,
                "label":      r.label,
                "color":      r.color,
                "actions":    r.actions or [],
            }
            for r in db_obj.rules or []
        ],
    }


def _check(data: Dict) -> List[str]:
    """
    Contrôle avant écriture. Seules les bornes inversées bloquent ; les
    autres erreurs (trous, aucune règle...) sont journalisées et la
    configuration est enregistrée comme brouillon, complété via add_rule.
    """
    errors = validate_configuration(ScoringConfiguration.from_dict({"id": data.get("id") or "new", **data}))
    blocking = [e for e in errors if e in BLOCKING_ERRORS]
    if blocking:
        raise InvalidScoringConfiguration(blocking)
    if errors:
        logger.warning(
            "SCORING_CONFIG_INCOMPLETE",
            extra={"questionnaire_id": data.get("questionnaire_id"), "errors": errors},
        )
    return errors


class ScoringService:

    # ── Configurations ────────────────────────────────────────

    async def create_configuration(
        self, db: AsyncSession, payload: ScoringConfigIn, created_by: Optional[str] = None
    ):
        data = payload.model_dump()
        _check(data)

        config = await repo.create_config(db, data, created_by=created_by)
        logger.info(
            "SCORING_CONFIG_CREATED",
            extra={"config_id": config.id, "questionnaire_id": config.questionnaire_id},
        )
        return config

    async def get_configuration(self, db: AsyncSession, config_id: str):
        config = await repo.get_config(db, config_id)
        if not config:
            raise ScoringConfigNotFound(config_id)
        return config

    async def list_configurations(
        self, db: AsyncSession, questionnaire_id: str, active_only: bool = False
    ) -> List:
        return await repo.list_configs(db, questionnaire_id, active_only=active_only)

    async def get_default_configuration(self, db: AsyncSession, questionnaire_id: str):
        return await repo.get_default_config(db, questionnaire_id)

    async def update_configuration(
        self, db: AsyncSession, config_id: str, payload: ScoringConfigUpdate
    ):
        config = await self.get_configuration(db, config_id)
        # null explicite : efface un champ optionnel, ignoré pour les autres
        changes = {
            k: v for k, v in payload.model_dump(exclude_unset=True).items()
            if v is not None or k in NULLABLE_FIELDS
        }

        merged = _snapshot(config)
        merged.update(changes)
        _check(merged)

        return await repo.update_config(db, config, changes)

    async def delete_configuration(self, db: AsyncSession, config_id: str) -> bool:
        config = await repo.get_config(db, config_id)
        if not config:
            return False
        await repo.delete_config(db, config)
        logger.info("SCORING_CONFIG_DELETED", extra={"config_id": config_id})
        return True

    async def set_default_configuration(self, db: AsyncSession, config_id: str):
        config = await self.get_configuration(db, config_id)
        return await repo.set_default(db, config)

    def validate_configuration(self, payload: ScoringConfigIn) -> Dict:
        data = payload.model_dump()
        errors = validate_configuration(ScoringConfiguration.from_dict({"id": "draft", **data}))
        return {"is_valid": not errors, "errors": errors}

    # ── Règles ────────────────────────────────────────────────

    async def add_rule(self, db: AsyncSession, config_id: str, payload: ScoringRuleIn):
        config = await self.get_configuration(db, config_id)
        return await repo.add_rule(db, config, payload.model_dump())

    async def update_rule(
        self, db: AsyncSession, config_id: str, rule_id: str, payload: ScoringRuleUpdate
    ):
        await self.get_configuration(db, config_id)
        rule = await repo.get_rule(db, config_id, rule_id)
        if not rule:
            raise ScoringRuleNotFound(rule_id)
        changes = {
            k: v for k, v in payload.model_dump(exclude_unset=True).items()
            if v is not None or k == "description"
        }
        return await repo.update_rule(db, rule, changes)

    async def delete_rule(self, db: AsyncSession, config_id: str, rule_id: str) -> bool:
        await self.get_configuration(db, config_id)
        rule = await repo.get_rule(db, config_id, rule_id)
        if not rule:
            return False
        await repo.delete_rule(db, rule)
        return True

    # ── Catégories ────────────────────────────────────────────

    async def create_category(self, db: AsyncSession, payload: ScoreCategoryIn):
        return await repo.create_category(db, payload.model_dump())

    async def get_categories(self, db: AsyncSession, questionnaire_id: str) -> List:
        return await repo.get_categories(db, questionnaire_id)

    # ── Calcul ────────────────────────────────────────────────

    async def calculate_score(self, db: AsyncSession, config_id: str, payload: CalculateScoreIn):
        config = await self.get_configuration(db, config_id)

        questions = [q.to_domain() for q in payload.questions]
        answers = [a.to_domain() for a in payload.answers]

        if payload.apply_conditional_logic:
            logic = ConditionalLogicEngine(questions, answers)
            questions = logic.get_visible_questions()
            in_scope = {question_key(q.id) for q in questions}
            answers = [a for a in answers if question_key(a.question_id) in in_scope]

        engine = ScoringEngine()
        engine.add_configuration(config)
        for category in await repo.get_categories(db, config.questionnaire_id):
            engine.add_category(category)

        result = engine.calculate_score(
            Response(id=payload.response_id, questionnaire_id=config.questionnaire_id),
            answers,
            questions,
            config.id,
        )
        return await self.store_score(db, result, config.questionnaire_id)

    async def calculate_default_score(
        self, db: AsyncSession, questionnaire_id: str, payload: CalculateScoreIn
    ):
        config = await repo.get_default_config(db, questionnaire_id)
        if not config:
            raise DefaultConfigNotFound(questionnaire_id)
        return await self.calculate_score(db, config.id, payload)

    # ── Scores persistés ──────────────────────────────────────

    async def store_score(self, db: AsyncSession, result: ScoreResult, questionnaire_id: str):
        data = result.to_dict()
        data["response_id"] = str(data["response_id"])
        data["questionnaire_id"] = str(questionnaire_id)
        return await repo.upsert_score(db, data)

    async def get_score(self, db: AsyncSession, response_id: str, config_id: str):
        return await repo.get_score(db, response_id, config_id)

    async def get_scores_for_response(self, db: AsyncSession, response_id: str) -> List:
        return await repo.get_scores_for_response(db, response_id)

    # ── Analytics ─────────────────────────────────────────────

    async def get_analytics(
        self,
        db: AsyncSession,
        questionnaire_id: str,
        config_id: Optional[str] = None,
        days: Optional[int] = None,
    ) -> Dict:
        since = datetime.now(timezone.utc) - timedelta(days=days) if days else None
        scores = await repo.list_scores(db, questionnaire_id, config_id=config_id, since=since)
        analytics = compute_analytics(scores)
        analytics.update({"questionnaire_id": questionnaire_id, "config_id": config_id})
        return analytics
