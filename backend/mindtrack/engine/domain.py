# engine/domain.py
"""
Modèle de données des engines — ZÉRO accès DB.

Les engines lisent les attributs par nom : ces dataclasses, les objets ORM
(shared/models) et les SimpleNamespace des tests sont interchangeables.
Les constructeurs from_dict() servent aux payloads JSON (API, seed, JSON
des colonnes conditional_logic / rules).
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

from mindtrack.shared.enums import (
    Combinator,
    ConditionOperator,
    LogicAction,
    RiskLevel,
    ScoringMethod,
    VisualizationType,
)

QuestionId = Union[int, str]


def question_key(question_id: QuestionId) -> str:
    """Clé normalisée : 3 et "3" désignent la même question."""
    return str(question_id)


def enum_value(value: Any) -> Any:
    """RiskLevel.HIGH → "high" ; une chaîne reste telle quelle."""
    return getattr(value, "value", value)


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


# ── Questions / réponses ─────────────────────────────────────────────────────

@dataclass
class Condition:
    question_id: QuestionId
    operator: ConditionOperator
    value: Any = None

    @classmethod
    def from_dict(cls, data: Dict) -> Condition:
        return cls(
            question_id=data["question_id"],
            operator=ConditionOperator(data["operator"]),
            value=data.get("value"),
        )


@dataclass
class ConditionalRule:
    conditions: List[Condition] = field(default_factory=list)
    combinator: Combinator = Combinator.AND
    action: LogicAction = LogicAction.SHOW

    @classmethod
    def from_dict(cls, data: Dict) -> ConditionalRule:
        return cls(
            conditions=[
                c if isinstance(c, Condition) else Condition.from_dict(c)
                for c in data.get("conditions") or []
            ],
            combinator=Combinator(data.get("combinator") or Combinator.AND),
            action=LogicAction(data.get("action") or LogicAction.SHOW),
        )


def rule_of(question: Any) -> Optional[ConditionalRule]:
    """conditional_logic d'une question, qu'il soit dict (JSON) ou déjà typé."""
    logic = getattr(question, "conditional_logic", None)
    if not logic:
        return None
    if isinstance(logic, ConditionalRule):
        return logic
    if isinstance(logic, dict):
        return ConditionalRule.from_dict(logic)
    return ConditionalRule(
        conditions=[
            c if isinstance(c, Condition) else Condition.from_dict(c)
            for c in getattr(logic, "conditions", [])
        ],
        combinator=Combinator(getattr(logic, "combinator", Combinator.AND)),
        action=LogicAction(getattr(logic, "action", LogicAction.SHOW)),
    )


@dataclass
class Question:
    id: QuestionId
    type: str
    order: int = 0
    text: str = ""
    required: bool = False
    options: List[str] = field(default_factory=list)
    validation_rules: Dict[str, Any] = field(default_factory=dict)
    conditional_logic: Optional[ConditionalRule] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict) -> Question:
        logic = data.get("conditional_logic")
        return cls(
            id=data["id"],
            type=data["type"],
            order=data.get("order", 0),
            text=data.get("text") or "",
            required=bool(data.get("required", False)),
            options=list(data.get("options") or []),
            validation_rules=dict(data.get("validation_rules") or {}),
            conditional_logic=ConditionalRule.from_dict(logic) if logic else None,
            metadata=dict(data.get("metadata") or {}),
        )


@dataclass
class Answer:
    question_id: QuestionId
    value: Any = None

    @classmethod
    def from_dict(cls, data: Dict) -> Answer:
        return cls(question_id=data["question_id"], value=data.get("value"))


def answer_map(answers: Iterable[Any]) -> Dict[str, Any]:
    """
    {question_key: value} à partir d'une liste de réponses.
    Une réponse ultérieure pour la même question remplace la précédente.
    """
    mapped: Dict[str, Any] = {}
    for answer in answers or []:
        if isinstance(answer, dict):
            mapped[question_key(answer["question_id"])] = answer.get("value")
        else:
            mapped[question_key(answer.question_id)] = answer.value
    return mapped


@dataclass
class Response:
    id: QuestionId
    questionnaire_id: QuestionId
    metadata: Dict[str, Any] = field(default_factory=dict)


# ── Configuration de scoring ─────────────────────────────────────────────────

@dataclass
class ScoringRule:
    min_score: float
    max_score: float
    risk_level: RiskLevel
    label: str
    color: str = "#9CA3AF"
    actions: List[str] = field(default_factory=list)
    description: Optional[str] = None
    id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict) -> ScoringRule:
        return cls(
            id=data.get("id"),
            min_score=data["min_score"],
            max_score=data["max_score"],
            risk_level=RiskLevel(data["risk_level"]),
            label=data["label"],
            description=data.get("description"),
            color=data.get("color") or "#9CA3AF",
            actions=list(data.get("actions") or []),
        )


@dataclass
class ScoringConfiguration:
    id: str
    questionnaire_id: QuestionId
    name: str
    scoring_method: ScoringMethod
    min_score: float
    max_score: float
    rules: List[ScoringRule] = field(default_factory=list)
    weights: Dict[str, float] = field(default_factory=dict)
    formula: Optional[str] = None
    formula_variables: Dict[str, float] = field(default_factory=dict)
    passing_score: Optional[float] = None
    visualization_type: VisualizationType = VisualizationType.GAUGE
    description: Optional[str] = None
    is_default: bool = False
    is_active: bool = True

    @classmethod
    def from_dict(cls, data: Dict) -> ScoringConfiguration:
        return cls(
            id=data["id"],
            questionnaire_id=data["questionnaire_id"],
            name=data.get("name") or "",
            description=data.get("description"),
            scoring_method=data.get("scoring_method") or ScoringMethod.SUM,
            min_score=data.get("min_score", 0),
            max_score=data.get("max_score", 100),
            passing_score=data.get("passing_score"),
            rules=[
                r if isinstance(r, ScoringRule) else ScoringRule.from_dict(r)
                for r in data.get("rules") or []
            ],
            weights=dict(data.get("weights") or {}),
            formula=data.get("formula"),
            formula_variables=dict(data.get("formula_variables") or {}),
            visualization_type=data.get("visualization_type") or VisualizationType.GAUGE,
            is_default=bool(data.get("is_default", False)),
            is_active=bool(data.get("is_active", True)),
        )


@dataclass
class ScoreCategory:
    id: str
    questionnaire_id: QuestionId
    name: str
    question_ids: List[QuestionId] = field(default_factory=list)
    weight: float = 1.0
    color: str = "#6B7280"
    order: int = 0
    description: Optional[str] = None


# ── Résultat ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoreResult:
    response_id: QuestionId
    config_id: str
    total_score: float
    normalized_score: float
    percentage: float
    risk_level: RiskLevel
    risk_label: str
    risk_color: str
    actions: List[str]
    visualization_data: Dict[str, Any]
    calculated_at: datetime
    category_scores: Optional[Dict[str, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["risk_level"] = RiskLevel(self.risk_level).value
        return data
