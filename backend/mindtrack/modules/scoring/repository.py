# modules/scoring/repository.py
"""
Accès DB pour les configurations de scoring, règles, catégories et scores.

Invariant « un seul défaut par questionnaire » : toute écriture qui pose
is_default=True exécute, dans la MÊME transaction, un
    UPDATE scoring_configurations SET is_default = false
    WHERE questionnaire_id = :q AND id != :id
avant l'unique commit. Deux écritures concurrentes ne se voient pas : l'index
unique partiel uq_scoring_default_per_questionnaire rejette la seconde,
remontée en DefaultConfigConflict.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from mindtrack.shared.errors import DefaultConfigConflict
from mindtrack.shared.models import CalculatedScore, ScoreCategory, ScoringConfiguration, ScoringRule

logger = logging.getLogger(__name__)

CONFIG_FIELDS = (
    "name", "description", "scoring_method", "min_score", "max_score", "passing_score",
    "weights", "formula", "formula_variables", "visualization_type", "visualization_config",
    "is_active", "is_default",
)
RULE_FIELDS = ("min_score", "max_score", "risk_level", "label", "description", "color", "actions")
SCORE_KEY = ("response_id", "config_id")


def _new_id() -> str:
    return str(uuid.uuid4())


def _plain(value):
    return getattr(value, "value", value)


class ScoringRepository:

    # ── Configurations ────────────────────────────────────────

    async def get_config(self, db: AsyncSession, config_id: str) -> Optional[ScoringConfiguration]:
        r = await db.execute(
            select(ScoringConfiguration)
            .options(selectinload(ScoringConfiguration.rules))
            .where(ScoringConfiguration.id == config_id)
            .execution_options(populate_existing=True)
        )
        return r.scalar_one_or_none()

    async def list_configs(
        self, db: AsyncSession, questionnaire_id: str, active_only: bool = False
    ) -> List[ScoringConfiguration]:
        query = (
            select(ScoringConfiguration)
            .options(selectinload(ScoringConfiguration.rules))
            .where(ScoringConfiguration.questionnaire_id == questionnaire_id)
        )
        if active_only:
            query = query.where(ScoringConfiguration.is_active == True)
        r = await db.execute(query.order_by(ScoringConfiguration.created_at.desc()))
        return r.scalars().all()

    async def get_default_config(
        self, db: AsyncSession, questionnaire_id: str
    ) -> Optional[ScoringConfiguration]:
        r = await db.execute(
            select(ScoringConfiguration)
            .options(selectinload(ScoringConfiguration.rules))
            .where(
                ScoringConfiguration.questionnaire_id == questionnaire_id,
                ScoringConfiguration.is_default == True,
            )
        )
        return r.scalars().first()

    async def _unset_other_defaults(
        self, db: AsyncSession, questionnaire_id: str, keep_id: str
    ) -> None:
        await db.execute(
            update(ScoringConfiguration)
            .where(
                ScoringConfiguration.questionnaire_id == questionnaire_id,
                ScoringConfiguration.id != keep_id,
            )
            .values(is_default=False)
        )
        logger.info(
            "DEFAULT_CONFIG_UNSET_OTHERS",
            extra={"questionnaire_id": questionnaire_id, "config_id": keep_id},
        )

    async def _commit_default(self, db: AsyncSession, questionnaire_id: str, config_id: str) -> None:
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            logger.warning(
                "DEFAULT_CONFIG_CONFLICT",
                extra={"questionnaire_id": questionnaire_id, "config_id": config_id},
            )
            raise DefaultConfigConflict(questionnaire_id)

    def _build_rules(self, config_id: str, rules: List[Dict]) -> List[ScoringRule]:
        return [
            ScoringRule(
                id=_new_id(),
                config_id=config_id,
                order_num=index,
                **{k: _plain(rule.get(k)) for k in RULE_FIELDS if k in rule},
            )
            for index, rule in enumerate(rules)
        ]

    async def create_config(
        self, db: AsyncSession, data: Dict, created_by: Optional[str] = None
    ) -> ScoringConfiguration:
        config_id = _new_id()
        db_obj = ScoringConfiguration(
            id=config_id,
            questionnaire_id=data["questionnaire_id"],
            created_by=created_by,
            **{k: _plain(data[k]) for k in CONFIG_FIELDS if k in data},
        )
        db_obj.rules = self._build_rules(config_id, data.get("rules") or [])

        if db_obj.is_default:
            await self._unset_other_defaults(db, db_obj.questionnaire_id, config_id)
        db.add(db_obj)
        await self._commit_default(db, db_obj.questionnaire_id, config_id)
        await db.refresh(db_obj)
        return db_obj

    async def update_config(
        self, db: AsyncSession, db_obj: ScoringConfiguration, changes: Dict
    ) -> ScoringConfiguration:
        # UPDATE avant les setattr : l'autoflush n'écrit pas deux défauts
        if changes.get("is_default"):
            await self._unset_other_defaults(db, db_obj.questionnaire_id, db_obj.id)

        for key in CONFIG_FIELDS:
            if key in changes:
                setattr(db_obj, key, _plain(changes[key]))
        if changes.get("rules") is not None:
            db_obj.rules = self._build_rules(db_obj.id, changes["rules"])
        await self._commit_default(db, db_obj.questionnaire_id, db_obj.id)
        await db.refresh(db_obj)
        return db_obj

    async def set_default(
        self, db: AsyncSession, db_obj: ScoringConfiguration
    ) -> ScoringConfiguration:
        await self._unset_other_defaults(db, db_obj.questionnaire_id, db_obj.id)
        db_obj.is_default = True
        await self._commit_default(db, db_obj.questionnaire_id, db_obj.id)
        await db.refresh(db_obj)
        return db_obj

    async def delete_config(self, db: AsyncSession, db_obj: ScoringConfiguration) -> None:
        # Les règles suivent (delete-orphan) ; les CalculatedScore restent
        await db.delete(db_obj)
        await db.commit()

    # ── Règles ────────────────────────────────────────────────

    async def get_rule(self, db: AsyncSession, config_id: str, rule_id: str) -> Optional[ScoringRule]:
        r = await db.execute(
            select(ScoringRule).where(ScoringRule.id == rule_id, ScoringRule.config_id == config_id)
        )
        return r.scalar_one_or_none()

    async def add_rule(
        self, db: AsyncSession, db_obj: ScoringConfiguration, data: Dict
    ) -> ScoringRule:
        rule = self._build_rules(db_obj.id, [data])[0]
        rule.order_num = len(db_obj.rules or [])
        db.add(rule)
        await db.commit()
        await db.refresh(rule)
        return rule

    async def update_rule(self, db: AsyncSession, rule: ScoringRule, changes: Dict) -> ScoringRule:
        for key in RULE_FIELDS:
            if key in changes:
                setattr(rule, key, _plain(changes[key]))
        await db.commit()
        await db.refresh(rule)
        return rule

    async def delete_rule(self, db: AsyncSession, rule: ScoringRule) -> None:
        await db.delete(rule)
        await db.commit()

    # ── Catégories ────────────────────────────────────────────

    async def create_category(self, db: AsyncSession, data: Dict) -> ScoreCategory:
        db_obj = ScoreCategory(id=_new_id(), **data)
        db.add(db_obj)
        await db.commit()
        await db.refresh(db_obj)
        return db_obj

    async def get_categories(self, db: AsyncSession, questionnaire_id: str) -> List[ScoreCategory]:
        r = await db.execute(
            select(ScoreCategory)
            .where(ScoreCategory.questionnaire_id == questionnaire_id)
            .order_by(ScoreCategory.order)
        )
        return r.scalars().all()

    # ── Scores calculés ───────────────────────────────────────

    async def get_score(
        self, db: AsyncSession, response_id: str, config_id: str
    ) -> Optional[CalculatedScore]:
        r = await db.execute(
            select(CalculatedScore).where(
                CalculatedScore.response_id == response_id,
                CalculatedScore.config_id == config_id,
            )
        )
        return r.scalar_one_or_none()

    async def upsert_score(self, db: AsyncSession, data: Dict) -> CalculatedScore:
        """
        Une ligne par (response_id, config_id) : un recalcul écrase le précédent.
        INSERT ... ON CONFLICT atomique : deux recalculs concurrents ne se
        heurtent pas à uq_score_response_config.
        """
        stmt = pg_insert(CalculatedScore).values(**data)
        stmt = stmt.on_conflict_do_update(
            constraint="uq_score_response_config",
            set_={key: stmt.excluded[key] for key in data if key not in SCORE_KEY},
        ).returning(CalculatedScore)

        r = await db.execute(stmt, execution_options={"populate_existing": True})
        db_obj = r.scalar_one()
        await db.commit()
        return db_obj

    async def get_scores_for_response(
        self, db: AsyncSession, response_id: str
    ) -> List[CalculatedScore]:
        r = await db.execute(
            select(CalculatedScore)
            .where(CalculatedScore.response_id == response_id)
            .order_by(CalculatedScore.calculated_at.desc())
        )
        return r.scalars().all()

    async def list_scores(
        self,
        db: AsyncSession,
        questionnaire_id: str,
        config_id: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> List[CalculatedScore]:
        query = select(CalculatedScore).where(CalculatedScore.questionnaire_id == questionnaire_id)
        if config_id:
            query = query.where(CalculatedScore.config_id == config_id)
        if since:
            query = query.where(CalculatedScore.calculated_at >= since.astimezone(timezone.utc))
        r = await db.execute(query.order_by(CalculatedScore.calculated_at))
        return r.scalars().all()
