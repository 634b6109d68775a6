# mindtrack/shared/enums.py
"""
Toutes les énumérations du projet MindTrack.

Source unique de vérité pour les types de questions, opérateurs de logique
conditionnelle, méthodes de scoring et niveaux de risque.
Importé par les modèles, schemas, services et engine.
"""

from enum import Enum


class QuestionType(str, Enum):
    # Texte
    TEXT      = "text"
    TEXTAREA  = "textarea"
    RICH_TEXT = "rich_text"

    # Numérique
    NUMBER  = "number"
    DECIMAL = "decimal"

    # Choix
    SINGLE_CHOICE   = "single_choice"
    MULTIPLE_CHOICE = "multiple_choice"
    DROPDOWN        = "dropdown"

    # Échelles
    RATING                = "rating"
    STAR_RATING           = "star_rating"
    LIKERT                = "likert"
    NPS                   = "nps"
    SEMANTIC_DIFFERENTIAL = "semantic_differential"
    SLIDER                = "slider"

    # Temps
    DATE     = "date"
    TIME     = "time"
    DATETIME = "datetime"

    # Fichiers
    FILE_UPLOAD  = "file_upload"
    IMAGE_UPLOAD = "image_upload"

    BOOLEAN = "boolean"

    # Géographique
    COUNTRY = "country"
    STATE   = "state"
    CITY    = "city"


TEXT_TYPES   = (QuestionType.TEXT, QuestionType.TEXTAREA, QuestionType.RICH_TEXT)
CHOICE_TYPES = (QuestionType.SINGLE_CHOICE, QuestionType.DROPDOWN)
RATING_TYPES = (
    QuestionType.RATING,
    QuestionType.STAR_RATING,
    QuestionType.LIKERT,
    QuestionType.NPS,
    QuestionType.SEMANTIC_DIFFERENTIAL,
    QuestionType.SLIDER,
)
NUMERIC_TYPES = (QuestionType.NUMBER, QuestionType.DECIMAL) + RATING_TYPES


class ConditionOperator(str, Enum):
    EQUALS       = "equals"
    NOT_EQUALS   = "not_equals"
    GREATER_THAN = "greater_than"
    LESS_THAN    = "less_than"
    CONTAINS     = "contains"


class Combinator(str, Enum):
    AND = "AND"
    OR  = "OR"


class LogicAction(str, Enum):
    SHOW       = "show"
    HIDE       = "hide"
    REQUIRE    = "require"
    END_SURVEY = "end_survey"


class ScoringMethod(str, Enum):
    SUM      = "sum"
    AVERAGE  = "average"
    WEIGHTED = "weighted"
    CUSTOM   = "custom"


class RiskLevel(str, Enum):
    NONE     = "none"
    LOW      = "low"
    MEDIUM   = "medium"
    HIGH     = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RISK_ORDER.index(self)


_RISK_ORDER = [RiskLevel.NONE, RiskLevel.LOW, RiskLevel.MEDIUM, RiskLevel.HIGH, RiskLevel.CRITICAL]
HIGH_RISK_LEVELS = (RiskLevel.HIGH, RiskLevel.CRITICAL)


class VisualizationType(str, Enum):
    GAUGE   = "gauge"
    BAR     = "bar"
    LINE    = "line"
    RADAR   = "radar"
    PIE     = "pie"
    HEATMAP = "heatmap"


class TrendDirection(str, Enum):
    UP                = "up"
    DOWN              = "down"
    STABLE            = "stable"
    INSUFFICIENT_DATA = "insufficient_data"
