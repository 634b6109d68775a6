# mindtrack/shared/models/Scoring.py
"""
Configurations de scoring, règles de risque, catégories et scores calculés.

ScoringConfiguration → ScoringRule (cascade delete-orphan)
CalculatedScore      → config_id SANS FK : l'historique des scores survit
                       à la suppression d'une configuration.
Au plus une configuration is_default=True par questionnaire_id : bascule
faite par ScoringRepository, index unique partiel pour les écritures
concurrentes (uq_scoring_default_per_questionnaire).
"""
from sqlalchemy import Column, Integer, String, Boolean, Float, DateTime, JSON, ForeignKey, Index, UniqueConstraint, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from mindtrack.core.database import Base


class ScoringConfiguration(Base):
    __tablename__ = "scoring_configurations"

    id               = Column(String, primary_key=True)
    questionnaire_id = Column(String, nullable=False, index=True)
    name             = Column(String, nullable=False)
    description      = Column(String, nullable=True)

    scoring_method    = Column(String, nullable=False, default="sum")
    # sum | average | weighted | custom
    weights           = Column(JSON, nullable=False, default=dict)   # {"question_<id>": w}
    formula           = Column(String, nullable=True)
    formula_variables = Column(JSON, nullable=False, default=dict)

    min_score     = Column(Float, nullable=False, default=0)
    max_score     = Column(Float, nullable=False, default=100)
    passing_score = Column(Float, nullable=True)

    visualization_type   = Column(String, nullable=False, default="gauge")
    visualization_config = Column(JSON, nullable=False, default=dict)

    is_active  = Column(Boolean, default=True)
    is_default = Column(Boolean, default=False, index=True)
    created_by = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    rules = relationship(
        "ScoringRule",
        back_populates="config",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ScoringRule.order_num",
    )

    __table_args__ = (
        Index(
            "uq_scoring_default_per_questionnaire",
            "questionnaire_id",
            unique=True,
            postgresql_where=text("is_default"),
        ),
    )

    def __repr__(self):
        return f"<ScoringConfiguration id={self.id} q={self.questionnaire_id} default={self.is_default}>"


class ScoringRule(Base):
    __tablename__ = "scoring_rules"

    id        = Column(String, primary_key=True)
    config_id = Column(String, ForeignKey("scoring_configurations.id", ondelete="CASCADE"), nullable=False, index=True)

    # Bornes inclusives
    min_score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False)

    risk_level  = Column(String, nullable=False)   # none | low | medium | high | critical
    label       = Column(String, nullable=False)
    description = Column(String, nullable=True)
    color       = Column(String, nullable=False, default="#9CA3AF")
    actions     = Column(JSON, nullable=False, default=list)
    order_num   = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    config = relationship("ScoringConfiguration", back_populates="rules")

    def __repr__(self):
        return f"<ScoringRule id={self.id} [{self.min_score}–{self.max_score}] {self.risk_level}>"


class ScoreCategory(Base):
    __tablename__ = "score_categories"

    id               = Column(String, primary_key=True)
    questionnaire_id = Column(String, nullable=False, index=True)
    name             = Column(String, nullable=False)
    description      = Column(String, nullable=True)
    weight           = Column(Float, nullable=False, default=1.0)
    color            = Column(String, nullable=False, default="#6B7280")
    order            = Column("order_num", Integer, nullable=False, default=0)
    question_ids     = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ScoreCategory id={self.id} name={self.name} w={self.weight}>"


class CalculatedScore(Base):
    """
    Résultat persisté d'un calcul. Une ligne par (response_id, config_id),
    écrasée à chaque recalcul.
    """
    __tablename__ = "calculated_scores"

    id               = Column(Integer, primary_key=True, index=True)
    response_id      = Column(String, nullable=False, index=True)
    config_id        = Column(String, nullable=False, index=True)
    questionnaire_id = Column(String, nullable=False, index=True)

    total_score      = Column(Float, nullable=False)
    normalized_score = Column(Float, nullable=False)
    percentage       = Column(Float, nullable=False)

    risk_level = Column(String, nullable=False)
    risk_label = Column(String, nullable=False)
    risk_color = Column(String, nullable=False)
    actions    = Column(JSON, nullable=False, default=list)

    category_scores    = Column(JSON, nullable=True)
    visualization_data = Column(JSON, nullable=False, default=dict)

    calculated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        UniqueConstraint("response_id", "config_id", name="uq_score_response_config"),
    )

    def __repr__(self):
        return f"<CalculatedScore response={self.response_id} config={self.config_id} score={self.normalized_score}>"
