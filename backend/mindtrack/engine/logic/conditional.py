# engine/logic/conditional.py
"""
Moteur de logique conditionnelle — ZÉRO accès DB.

Une instance par session de réponse. État :
    - liste de questions (figée, triée par `order`)
    - snapshot des réponses (remplacé en bloc par update_answers)
    - cache de visibilité, vidé à chaque update
    - état de terminaison anticipée (définitif une fois déclenché)

Les conditions ne lisent que les réponses, jamais la visibilité d'autres
questions : l'évaluation ne peut pas boucler, même sur un graphe cyclique.
find_logic_issues() signale ces cas à la création du questionnaire.

Appelé par : modules/questionnaire/service.py, modules/scoring/service.py
"""
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from mindtrack.engine.domain import (
    Condition,
    ConditionalRule,
    answer_map,
    is_empty,
    question_key,
    rule_of,
)
from mindtrack.shared.enums import Combinator, ConditionOperator, LogicAction

logger = logging.getLogger(__name__)

VARIABLE_PATTERN = re.compile(r"\{\{(\w+)\.(\w+)\}\}")


@dataclass(frozen=True)
class TerminationState:
    trigger_question_id: Any
    trigger_order: int
    total_questions_shown: int
    questions_skipped: int


# ── Évaluation des conditions ─────────────────────────────────────────────────

def _as_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def _strict_equals(left: Any, right: Any) -> bool:
    # True == 1 en Python : un booléen n'est égal qu'à un booléen
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    return left == right


def _contains(haystack: Any, needle: Any) -> bool:
    if isinstance(haystack, (list, tuple, set)):
        return any(_strict_equals(item, needle) for item in haystack)
    if isinstance(haystack, str) and isinstance(needle, str):
        return needle.lower() in haystack.lower()
    return False


def evaluate_condition(condition: Condition, answers: Dict[str, Any]) -> bool:
    key = question_key(condition.question_id)
    if key not in answers:
        return False
    actual = answers[key]
    expected = condition.value

    if condition.operator == ConditionOperator.EQUALS:
        return _strict_equals(actual, expected)
    if condition.operator == ConditionOperator.NOT_EQUALS:
        return not _strict_equals(actual, expected)
    if condition.operator in (ConditionOperator.GREATER_THAN, ConditionOperator.LESS_THAN):
        left, right = _as_number(actual), _as_number(expected)
        if left is None or right is None:
            return False
        return left > right if condition.operator == ConditionOperator.GREATER_THAN else left < right
    if condition.operator == ConditionOperator.CONTAINS:
        return _contains(actual, expected)
    return False


def evaluate_rule(rule: ConditionalRule, answers: Dict[str, Any]) -> bool:
    results = [evaluate_condition(c, answers) for c in rule.conditions]
    if rule.combinator == Combinator.OR:
        return any(results)
    return all(results)


# ── Moteur ────────────────────────────────────────────────────────────────────

class ConditionalLogicEngine:

    def __init__(self, questions: Iterable[Any], answers: Iterable[Any] = ()):
        # sorted() est stable : à order égal, l'ordre de saisie est conservé
        self._questions: List[Any] = sorted(questions, key=lambda q: q.order)
        self._by_key: Dict[str, Any] = {question_key(q.id): q for q in self._questions}
        self._rules: Dict[str, Optional[ConditionalRule]] = {
            question_key(q.id): rule_of(q) for q in self._questions
        }
        self._answers: Dict[str, Any] = {}
        self._visibility_cache: Dict[str, bool] = {}
        self._termination: Optional[TerminationState] = None
        self.update_answers(answers)

    # ── Réponses ──────────────────────────────────────────────

    def update_answers(self, answers: Iterable[Any]) -> None:
        """Remplace le snapshot des réponses et réévalue la terminaison."""
        self._answers = answer_map(answers)
        self._visibility_cache = {}
        self._check_termination()

    @property
    def answers(self) -> Dict[str, Any]:
        return dict(self._answers)

    def _has_answer(self, question: Any) -> bool:
        return not is_empty(self._answers.get(question_key(question.id)))

    # ── Visibilité ────────────────────────────────────────────

    def _is_visible(self, question: Any) -> bool:
        key = question_key(question.id)
        if key in self._visibility_cache:
            return self._visibility_cache[key]

        if self._termination is not None and question.order > self._termination.trigger_order:
            visible = False
        else:
            rule = self._rules[key]
            if rule is None:
                visible = True
            elif rule.action == LogicAction.SHOW:
                visible = evaluate_rule(rule, self._answers)
            elif rule.action == LogicAction.HIDE:
                visible = not evaluate_rule(rule, self._answers)
            else:
                # require / end_survey n'affectent pas la visibilité
                visible = True

        self._visibility_cache[key] = visible
        return visible

    def get_visible_questions(self) -> List[Any]:
        return [q for q in self._questions if self._is_visible(q)]

    def is_question_visible(self, question_id: Any) -> bool:
        question = self._by_key.get(question_key(question_id))
        return question is not None and self._is_visible(question)

    # ── Obligation ────────────────────────────────────────────

    def _is_required(self, question: Any) -> bool:
        if getattr(question, "required", False):
            return True
        rule = self._rules[question_key(question.id)]
        return (
            rule is not None
            and rule.action == LogicAction.REQUIRE
            and evaluate_rule(rule, self._answers)
        )

    def is_question_required(self, question_id: Any) -> bool:
        question = self._by_key.get(question_key(question_id))
        return question is not None and self._is_required(question)

    def validate_required_questions(self) -> Dict:
        missing = [
            q.id for q in self.get_visible_questions()
            if self._is_required(q) and not self._has_answer(q)
        ]
        return {"is_valid": not missing, "missing_questions": missing}

    # ── Progression / navigation ──────────────────────────────

    def get_progress(self) -> Dict:
        visible = self.get_visible_questions()
        total = len(visible)
        current = sum(1 for q in visible if self._has_answer(q))
        percentage = math.floor(current / total * 100 + 0.5) if total else 0
        return {"current": current, "total": total, "percentage": percentage}

    def get_next_question(self, current_question_id: Any) -> Optional[Any]:
        """Prochaine question visible après la question courante, None en fin de parcours."""
        key = question_key(current_question_id)
        if key not in self._by_key:
            return None
        index = next(i for i, q in enumerate(self._questions) if question_key(q.id) == key)
        for question in self._questions[index + 1:]:
            if self._is_visible(question):
                return question
        return None

    def get_dynamic_question_text(self, question_id: Any) -> str:
        """
        Remplace les variables {{ref.value}} par la réponse de la question
        référencée (ref = id ou order). Une variable non résolue reste telle quelle.
        """
        question = self._by_key.get(question_key(question_id))
        if question is None:
            return ""

        def substitute(match: re.Match) -> str:
            ref, prop = match.group(1), match.group(2)
            if prop != "value":
                return match.group(0)
            target = self._by_key.get(ref) or next(
                (q for q in self._questions if str(q.order) == ref), None
            )
            if target is None or not self._has_answer(target):
                return match.group(0)
            value = self._answers[question_key(target.id)]
            if isinstance(value, (list, tuple)):
                return ", ".join(str(v) for v in value)
            return str(value)

        return VARIABLE_PATTERN.sub(substitute, getattr(question, "text", "") or "")

    # ── Terminaison anticipée ─────────────────────────────────

    def _check_termination(self) -> None:
        if self._termination is not None:
            return

        for question in self._questions:
            rule = self._rules[question_key(question.id)]
            if rule is None or rule.action != LogicAction.END_SURVEY:
                continue
            if not evaluate_rule(rule, self._answers):
                continue

            shown = [q for q in self.get_visible_questions() if q.order <= question.order]
            skipped = [
                q for q in self._questions
                if q.order > question.order and not self._has_answer(q)
            ]
            self._termination = TerminationState(
                trigger_question_id=question.id,
                trigger_order=question.order,
                total_questions_shown=len(shown),
                questions_skipped=len(skipped),
            )
            self._visibility_cache = {}
            logger.info(
                "RESPONSE_TERMINATED_EARLY",
                extra={
                    "trigger_question_id": question.id,
                    "questions_shown": len(shown),
                    "questions_skipped": len(skipped),
                },
            )
            return

    @property
    def is_terminated(self) -> bool:
        return self._termination is not None

    def get_termination_state(self) -> Dict:
        if self._termination is None:
            return {
                "early_termination": False,
                "trigger_question_id": None,
                "total_questions_shown": len(self.get_visible_questions()),
                "questions_skipped": 0,
            }
        return {
            "early_termination": True,
            "trigger_question_id": self._termination.trigger_question_id,
            "total_questions_shown": self._termination.total_questions_shown,
            "questions_skipped": self._termination.questions_skipped,
        }

    def get_completion_metadata(self) -> Dict:
        """État de terminaison + chemin de complétion (questions visibles répondues, dans l'ordre)."""
        metadata = self.get_termination_state()
        metadata["completion_path"] = [
            q.id for q in self.get_visible_questions() if self._has_answer(q)
        ]
        return metadata


# ── Vérifications à la conception ─────────────────────────────────────────────

def find_logic_issues(questions: Iterable[Any]) -> List[str]:
    """
    Signale les règles qui référencent une question inconnue, une question
    ultérieure ou la question elle-même. L'auto-référence est admise pour
    end_survey (la réponse déclenche la fin du questionnaire).
    """
    ordered = sorted(questions, key=lambda q: q.order)
    orders = {question_key(q.id): q.order for q in ordered}
    issues = []

    for question in ordered:
        rule = rule_of(question)
        if rule is None:
            continue
        own_key = question_key(question.id)
        for condition in rule.conditions:
            ref = question_key(condition.question_id)
            if ref not in orders:
                issues.append(f"Question {question.id} references unknown question {condition.question_id}")
            elif ref == own_key:
                if rule.action != LogicAction.END_SURVEY:
                    issues.append(f"Question {question.id} references itself")
            elif orders[ref] >= question.order:
                issues.append(
                    f"Question {question.id} references question {condition.question_id} "
                    f"which does not come before it"
                )
    return issues
