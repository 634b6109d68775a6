# engine/scoring/calculator.py
"""
ScoreCalculator : stratégie de calcul pour UNE configuration — ZÉRO accès DB.

Pipeline :
    1. Points par question (dispatch par type, voir POINT_EXTRACTORS)
    2. Méthode : sum | average | weighted | custom
    3. Normalisation (clamp dans [min_score, max_score])
    4. Classification du risque via les règles de la configuration
    5. Pourcentage + données de visualisation (zones)
    6. Scores par catégorie (optionnel)

La configuration peut être un ORM ScoringConfiguration, la dataclass
engine.domain.ScoringConfiguration ou un SimpleNamespace : seuls les
attributs sont lus.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional

from mindtrack.engine.domain import ScoreResult, answer_map, enum_value, is_empty, question_key
from mindtrack.engine.scoring.formula import evaluate_formula
from mindtrack.shared.enums import QuestionType, RiskLevel, ScoringMethod
from mindtrack.shared.errors import FormulaError, UnsupportedScoringMethod

logger = logging.getLogger(__name__)

NO_RISK = {
    "risk_level": RiskLevel.NONE,
    "label":      "No Risk Assessment",
    "color":      "#9CA3AF",
    "actions":    [],
}


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


# ── Points par question ───────────────────────────────────────────────────────

def _option_index(question: Any, value: Any) -> int:
    options = list(getattr(question, "options", None) or [])
    try:
        return options.index(value)
    except ValueError:
        return -1


def _points_from_table(question: Any, value: Any, points: List[Any], reverse: bool) -> float:
    table = list(reversed(points)) if reverse else list(points)
    selections = value if isinstance(value, (list, tuple)) else [value]
    total = 0.0
    for selection in selections:
        index = _option_index(question, selection)
        if 0 <= index < len(table):
            total += _number(table[index])
    return total


def _boolean_points(question: Any, value: Any) -> float:
    if isinstance(value, str):
        return 1.0 if value.strip().lower() == "true" else 0.0
    return 1.0 if value else 0.0


def _numeric_points(question: Any, value: Any) -> float:
    return _number(value)


def _likert_points(question: Any, value: Any) -> float:
    if isinstance(value, str) and _option_index(question, value) >= 0:
        return float(_option_index(question, value))
    return _number(value)


def _choice_points(question: Any, value: Any) -> float:
    return float(max(_option_index(question, value), 0))


def _selection_count(question: Any, value: Any) -> float:
    return float(len(value)) if isinstance(value, (list, tuple)) else 1.0


POINT_EXTRACTORS: Dict[QuestionType, Callable[[Any, Any], float]] = {
    QuestionType.BOOLEAN:               _boolean_points,
    QuestionType.NUMBER:                _numeric_points,
    QuestionType.DECIMAL:               _numeric_points,
    QuestionType.RATING:                _numeric_points,
    QuestionType.STAR_RATING:           _numeric_points,
    QuestionType.NPS:                   _numeric_points,
    QuestionType.SEMANTIC_DIFFERENTIAL: _numeric_points,
    QuestionType.SLIDER:                _numeric_points,
    QuestionType.LIKERT:                _likert_points,
    QuestionType.SINGLE_CHOICE:         _choice_points,
    QuestionType.DROPDOWN:              _choice_points,
    QuestionType.MULTIPLE_CHOICE:       _selection_count,
}


def question_points(question: Any, value: Any) -> float:
    """
    Points d'une réponse. Priorité à metadata["scoring"]["points"] :
        - liste alignée sur options → points de l'option choisie
          (somme pour un choix multiple, lue à l'envers si reverse_score)
        - nombre → points fixes dès que la question est répondue
    Sans barème, le type décide. Non répondu → 0.
    """
    if is_empty(value):
        return 0.0

    scoring = (getattr(question, "metadata", None) or {}).get("scoring") or {}
    points = scoring.get("points")
    if isinstance(points, (list, tuple)):
        return _points_from_table(question, value, points, bool(scoring.get("reverse_score")))
    if isinstance(points, (int, float)) and not isinstance(points, bool):
        return float(points)

    extractor = POINT_EXTRACTORS.get(getattr(question, "type", None))
    return extractor(question, value) if extractor else 0.0


# ── Calculateur ───────────────────────────────────────────────────────────────

class ScoreCalculator:

    def __init__(
        self,
        config: Any,
        questions: Iterable[Any],
        categories: Optional[Iterable[Any]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config
        self.questions = list(questions)
        self.categories = list(categories or [])
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def _range(self) -> float:
        return float(self.config.max_score) - float(self.config.min_score)

    def _to_percentage(self, score: float) -> float:
        if self._range <= 0:
            return 0.0
        return (score - float(self.config.min_score)) / self._range * 100

    # ── Méthodes de scoring ───────────────────────────────────

    def _points(self, answers: Dict[str, Any]) -> Dict[str, float]:
        return {
            question_key(q.id): question_points(q, answers.get(question_key(q.id)))
            for q in self.questions
        }

    def _sum(self, points: Dict[str, float]) -> float:
        return sum(points.values())

    def _average(self, points: Dict[str, float]) -> float:
        return self._sum(points) / len(self.questions) if self.questions else 0.0

    def _weight(self, question_id: Any) -> float:
        weights = getattr(self.config, "weights", None) or {}
        for key in (f"question_{question_id}", f"q_{question_id}", str(question_id)):
            if key in weights:
                return _number(weights[key])
        return 1.0

    def _weighted(self, points: Dict[str, float]) -> float:
        return sum(points[question_key(q.id)] * self._weight(q.id) for q in self.questions)

    def _custom(self, points: Dict[str, float], answered: int = 0) -> float:
        variables: Dict[str, float] = dict(getattr(self.config, "formula_variables", None) or {})
        variables.update({f"q_{key}": value for key, value in points.items()})
        variables.update({
            "total":   self._sum(points),
            "count":   float(answered),
            "average": self._average(points),
        })
        try:
            return evaluate_formula(getattr(self.config, "formula", None) or "", variables)
        except FormulaError as exc:
            logger.warning(
                "CUSTOM_FORMULA_FAILED",
                extra={"config_id": getattr(self.config, "id", None), "error": str(exc)},
            )
            return 0.0

    # ── Classification ────────────────────────────────────────

    def _sorted_rules(self) -> List[Any]:
        return sorted(self.config.rules or [], key=lambda r: float(r.min_score))

    def _risk(self, score: float) -> Dict:
        rules = self._sorted_rules()
        match = next(
            (r for r in rules if float(r.min_score) <= score <= float(r.max_score)),
            None,
        )
        if match is None:
            # Score fractionnaire entre deux règles entières (ex. 4.5 entre 0–4 et 5–9)
            below = [r for r in rules if float(r.min_score) <= score]
            match = below[-1] if below and score <= float(rules[-1].max_score) else None
        if match is None:
            return dict(NO_RISK)
        return {
            "risk_level": RiskLevel(enum_value(match.risk_level)),
            "label":      match.label,
            "color":      match.color,
            "actions":    list(match.actions or []),
        }

    def _zones(self) -> List[Dict]:
        return [
            {
                "min":        self._to_percentage(float(r.min_score)),
                "max":        self._to_percentage(float(r.max_score)),
                "color":      r.color,
                "label":      r.label,
                "risk_level": enum_value(r.risk_level),
            }
            for r in self._sorted_rules()
        ]

    def _category_scores(self, points: Dict[str, float]) -> Optional[Dict[str, float]]:
        if not self.categories:
            return None
        return {
            str(c.id): sum(points.get(question_key(qid), 0.0) for qid in c.question_ids or [])
            * _number(getattr(c, "weight", 1.0))
            for c in self.categories
        }

    # ── Entrée principale ─────────────────────────────────────

    def calculate(self, response: Any, answers: Iterable[Any]) -> ScoreResult:
        method = enum_value(self.config.scoring_method)
        values = answer_map(answers)
        answered = sum(1 for q in self.questions if not is_empty(values.get(question_key(q.id))))
        strategies = {
            ScoringMethod.SUM.value:      self._sum,
            ScoringMethod.AVERAGE.value:  self._average,
            ScoringMethod.WEIGHTED.value: self._weighted,
            ScoringMethod.CUSTOM.value:   lambda points: self._custom(points, answered),
        }
        if method not in strategies:
            raise UnsupportedScoringMethod(method)

        points = self._points(values)
        total = strategies[method](points)

        min_score, max_score = float(self.config.min_score), float(self.config.max_score)
        normalized = max(min_score, min(max_score, total))
        if method == ScoringMethod.CUSTOM.value:
            total = normalized

        percentage = round(self._to_percentage(normalized), 2)
        risk = self._risk(normalized)

        visualization = {
            "score":              normalized,
            "max_score":          self.config.max_score,
            "min_score":          self.config.min_score,
            "passing_score":      getattr(self.config, "passing_score", None),
            "risk_level":         risk["risk_level"].value,
            "label":              risk["label"],
            "visualization_type": enum_value(getattr(self.config, "visualization_type", None) or "gauge"),
            "percentage":         percentage,
            "zones":              self._zones(),
        }

        return ScoreResult(
            response_id=response["id"] if isinstance(response, dict) else getattr(response, "id", response),
            config_id=self.config.id,
            total_score=total,
            normalized_score=normalized,
            percentage=percentage,
            risk_level=risk["risk_level"],
            risk_label=risk["label"],
            risk_color=risk["color"],
            actions=risk["actions"],
            category_scores=self._category_scores(points),
            visualization_data=visualization,
            calculated_at=self.clock(),
        )
