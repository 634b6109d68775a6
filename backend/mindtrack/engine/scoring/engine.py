# engine/scoring/engine.py
"""
ScoringEngine : registre de configurations et calcul — ZÉRO accès DB.

Le registre appartient à l'instance (aucun état global) : chaque session
ou requête construit le sien. Index secondaire (questionnaire_id, is_default)
pour retrouver la configuration par défaut d'un questionnaire.

Appelé par : modules/scoring/service.py, seed/default_configs.py
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from mindtrack.engine.domain import ScoreResult, enum_value, question_key
from mindtrack.engine.scoring.calculator import ScoreCalculator
from mindtrack.shared.enums import ScoringMethod
from mindtrack.shared.errors import DefaultConfigNotFound, ScoringConfigNotFound

logger = logging.getLogger(__name__)


def _fmt(number: float) -> str:
    number = float(number)
    return str(int(number)) if number.is_integer() else str(number)


def validate_configuration(config: Any) -> List[str]:
    """
    Erreurs de conception d'une configuration (liste vide = valide).

    Les règles, triées par min_score, doivent couvrir [min_score, max_score]
    par pas entier : seul le premier trou est signalé ("Gap found at score X"),
    de même pour le premier chevauchement ("Overlap found at score X").
    """
    errors: List[str] = []

    if not (getattr(config, "name", None) or "").strip():
        errors.append("Configuration name is required")

    min_score = float(config.min_score)
    max_score = float(config.max_score)
    if max_score <= min_score:
        errors.append("Maximum score must be greater than minimum score")

    passing_score = getattr(config, "passing_score", None)
    if passing_score is not None and not (min_score <= float(passing_score) <= max_score):
        errors.append("Passing score must be between minimum and maximum scores")

    rules = sorted(getattr(config, "rules", None) or [], key=lambda r: float(r.min_score))
    if not rules:
        errors.append("At least one scoring rule is required")

    if enum_value(config.scoring_method) == ScoringMethod.CUSTOM.value:
        if not (getattr(config, "formula", None) or "").strip():
            errors.append("Formula is required for custom scoring method")

    if rules and max_score > min_score:
        gap = _first_gap(rules, min_score, max_score)
        if gap is not None:
            errors.append(f"Gap found at score {_fmt(gap)}")
        overlap = _first_overlap(rules)
        if overlap is not None:
            errors.append(f"Overlap found at score {_fmt(overlap)}")

    return errors


def _first_gap(rules: List[Any], min_score: float, max_score: float) -> Optional[float]:
    expected = min_score
    for rule in rules:
        if float(rule.min_score) > expected:
            return expected
        expected = max(expected, float(rule.max_score) + 1)
    if expected <= max_score:
        return expected
    return None


def _first_overlap(rules: List[Any]) -> Optional[float]:
    for previous, current in zip(rules, rules[1:]):
        if float(current.min_score) <= float(previous.max_score):
            return float(current.min_score)
    return None


class ScoringEngine:

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self.clock = clock
        self._configurations: Dict[str, Any] = {}
        self._defaults: Dict[str, str] = {}
        self._categories: Dict[str, List[Any]] = {}

    # ── Registre ──────────────────────────────────────────────

    def add_configuration(self, config: Any) -> None:
        config_id = str(config.id)
        questionnaire = question_key(config.questionnaire_id)

        previous = self._configurations.get(config_id)
        if previous is not None and self._defaults.get(question_key(previous.questionnaire_id)) == config_id:
            del self._defaults[question_key(previous.questionnaire_id)]

        self._configurations[config_id] = config
        if getattr(config, "is_default", False):
            self._defaults[questionnaire] = config_id

    def get_configuration(self, config_id: Any) -> Optional[Any]:
        return self._configurations.get(str(config_id))

    def get_default_configuration(self, questionnaire_id: Any) -> Optional[Any]:
        config_id = self._defaults.get(question_key(questionnaire_id))
        return self._configurations.get(config_id) if config_id else None

    def remove_configuration(self, config_id: Any) -> bool:
        config = self._configurations.pop(str(config_id), None)
        if config is None:
            return False
        questionnaire = question_key(config.questionnaire_id)
        if self._defaults.get(questionnaire) == str(config_id):
            del self._defaults[questionnaire]
        return True

    def add_category(self, category: Any) -> None:
        self._categories.setdefault(question_key(category.questionnaire_id), []).append(category)

    def get_categories(self, questionnaire_id: Any) -> List[Any]:
        return sorted(
            self._categories.get(question_key(questionnaire_id), []),
            key=lambda c: getattr(c, "order", 0),
        )

    # ── Validation / calcul ───────────────────────────────────

    def validate_configuration(self, config: Any) -> List[str]:
        return validate_configuration(config)

    def calculate_score(
        self,
        response: Any,
        answers: Iterable[Any],
        questions: Iterable[Any],
        config_id: Any,
        categories: Optional[Iterable[Any]] = None,
    ) -> ScoreResult:
        config = self.get_configuration(config_id)
        if config is None:
            raise ScoringConfigNotFound(config_id)

        if categories is None:
            categories = self.get_categories(config.questionnaire_id)

        result = ScoreCalculator(config, questions, categories, clock=self.clock).calculate(
            response, answers
        )
        logger.info(
            "SCORE_CALCULATED",
            extra={
                "response_id": result.response_id,
                "config_id": result.config_id,
                "risk_level": result.risk_level.value,
            },
        )
        return result

    def calculate_default_score(
        self, response: Any, answers: Iterable[Any], questions: Iterable[Any]
    ) -> ScoreResult:
        questionnaire_id = (
            response["questionnaire_id"] if isinstance(response, dict) else response.questionnaire_id
        )
        config = self.get_default_configuration(questionnaire_id)
        if config is None:
            raise DefaultConfigNotFound(questionnaire_id)
        return self.calculate_score(response, answers, questions, config.id)
