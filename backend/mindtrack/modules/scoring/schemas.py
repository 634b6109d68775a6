# mindtrack/modules/scoring/schemas.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Dict, List, Optional, Union
from datetime import datetime

from mindtrack.modules.questionnaire.schemas import AnswerIn, QuestionIn
from mindtrack.shared.enums import RiskLevel, ScoringMethod, VisualizationType


def _as_str(value: Any) -> Any:
    # Identifiants opaques : 12 et "12" sont stockés "12"
    return str(value) if isinstance(value, int) and not isinstance(value, bool) else value


# ── Règles ─────────────────────────────────────────────────

class ScoringRuleIn(BaseModel):
    min_score: float
    max_score: float
    risk_level: RiskLevel
    label: str = Field(..., min_length=1)
    description: Optional[str] = None
    color: str = "#9CA3AF"
    actions: List[str] = []


class ScoringRuleUpdate(BaseModel):
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    risk_level: Optional[RiskLevel] = None
    label: Optional[str] = None
    description: Optional[str] = None
    color: Optional[str] = None
    actions: Optional[List[str]] = None


class ScoringRuleOut(BaseModel):
    id: str
    config_id: str
    min_score: float
    max_score: float
    risk_level: str
    label: str
    description: Optional[str] = None
    color: str
    actions: List[str] = []
    order_num: int = 0
    model_config = ConfigDict(from_attributes=True)


# ── Configurations ─────────────────────────────────────────

class ScoringConfigIn(BaseModel):
    questionnaire_id: str
    name: str
    description: Optional[str] = None
    scoring_method: ScoringMethod = ScoringMethod.SUM
    min_score: float = 0
    max_score: float = 100
    passing_score: Optional[float] = None
    weights: Dict[str, float] = {}
    formula: Optional[str] = None
    formula_variables: Dict[str, float] = {}
    visualization_type: VisualizationType = VisualizationType.GAUGE
    visualization_config: Dict[str, Any] = {}
    rules: List[ScoringRuleIn] = []
    is_default: bool = False
    is_active: bool = True

    @field_validator("questionnaire_id", mode="before")
    @classmethod
    def coerce_questionnaire_id(cls, value):
        return _as_str(value)


class ScoringConfigUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    scoring_method: Optional[ScoringMethod] = None
    min_score: Optional[float] = None
    max_score: Optional[float] = None
    passing_score: Optional[float] = None
    weights: Optional[Dict[str, float]] = None
    formula: Optional[str] = None
    formula_variables: Optional[Dict[str, float]] = None
    visualization_type: Optional[VisualizationType] = None
    visualization_config: Optional[Dict[str, Any]] = None
    rules: Optional[List[ScoringRuleIn]] = None    # remplace la liste entière
    is_default: Optional[bool] = None
    is_active: Optional[bool] = None


class ScoringConfigOut(BaseModel):
    id: str
    questionnaire_id: str
    name: str
    description: Optional[str] = None
    scoring_method: str
    min_score: float
    max_score: float
    passing_score: Optional[float] = None
    weights: Dict[str, float] = {}
    formula: Optional[str] = None
    formula_variables: Dict[str, float] = {}
    visualization_type: str
    visualization_config: Dict[str, Any] = {}
    rules: List[ScoringRuleOut] = []
    is_default: bool
    is_active: bool
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class ConfigValidationOut(BaseModel):
    is_valid: bool
    errors: List[str] = []


# ── Catégories ─────────────────────────────────────────────

class ScoreCategoryIn(BaseModel):
    questionnaire_id: str
    name: str
    description: Optional[str] = None
    weight: float = 1.0
    color: str = "#6B7280"
    order: int = 0
    question_ids: List[Union[int, str]] = []

    @field_validator("questionnaire_id", mode="before")
    @classmethod
    def coerce_questionnaire_id(cls, value):
        return _as_str(value)


class ScoreCategoryOut(BaseModel):
    id: str
    questionnaire_id: str
    name: str
    description: Optional[str] = None
    weight: float
    color: str
    order: int
    question_ids: List[Union[int, str]] = []
    model_config = ConfigDict(from_attributes=True)


# ── Calcul ─────────────────────────────────────────────────

class CalculateScoreIn(BaseModel):
    response_id: str
    questions: List[QuestionIn]
    answers: List[AnswerIn] = []
    apply_conditional_logic: bool = Field(
        True, description="Ne scorer que les questions visibles après logique conditionnelle"
    )

    @field_validator("response_id", mode="before")
    @classmethod
    def coerce_response_id(cls, value):
        return _as_str(value)


class ScoreResultOut(BaseModel):
    response_id: str
    config_id: str
    questionnaire_id: str
    total_score: float
    normalized_score: float
    percentage: float
    risk_level: str
    risk_label: str
    risk_color: str
    actions: List[str] = []
    category_scores: Optional[Dict[str, float]] = None
    visualization_data: Dict[str, Any]
    calculated_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ── Analytics ──────────────────────────────────────────────

class ScoreTrendPoint(BaseModel):
    date: str
    average_score: float
    count: int


class ScoringAnalyticsOut(BaseModel):
    questionnaire_id: str
    config_id: Optional[str] = None
    total_scores: int
    average_score: float
    risk_distribution: Dict[str, int]
    risk_percentage: Dict[str, float]
    high_risk_count: int
    score_trends: List[ScoreTrendPoint] = []
    trend_direction: str
