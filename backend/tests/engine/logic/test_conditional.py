# tests/engine/logic/test_conditional.py
"""
Tests unitaires pour engine.logic.conditional

Couverture :
    evaluate_condition      → opérateurs, égalité stricte, réponse absente
    evaluate_rule           → AND / OR
    visibilité              → show / hide / require / end_survey
    obligation              → required statique + règle require
    progression             → arrondi, questions masquées exclues
    terminaison anticipée   → définitive, compteurs, completion_path
    navigation / texte      → get_next_question, {{ref.value}}
    find_logic_issues       → référence inconnue, ultérieure, auto-référence
"""
import pytest

from mindtrack.engine.domain import Answer, Condition, ConditionalRule
from mindtrack.engine.logic.conditional import (
    ConditionalLogicEngine,
    evaluate_condition,
    evaluate_rule,
    find_logic_issues,
)
from mindtrack.shared.enums import ConditionOperator
from tests.conftest import make_question

pytestmark = pytest.mark.engine


def _logic(question_id, operator, value, action="show", combinator="AND"):
    return {
        "conditions": [{"question_id": question_id, "operator": operator, "value": value}],
        "combinator": combinator,
        "action": action,
    }


def _questionnaire(q4_logic=None, q1_logic=None):
    return [
        make_question(id=1, type="single_choice", order=1, text="How often?", required=True,
                      options=["Not at all", "Several days"], conditional_logic=q1_logic),
        make_question(id=2, type="text", order=2, text="Describe it"),
        make_question(id=3, type="boolean", order=3, text="Any medication?"),
        make_question(id=4, type="text", order=4, text="Which one?", conditional_logic=q4_logic),
    ]


def _ids(questions):
    return [q.id for q in questions]


# ── evaluate_condition ────────────────────────────────────────────────────────

class TestEvaluateCondition:
    def _cond(self, operator, value):
        return Condition(question_id=1, operator=ConditionOperator(operator), value=value)

    def test_reponse_absente_toujours_fausse(self):
        assert evaluate_condition(self._cond("not_equals", "x"), {}) is False

    def test_equals(self):
        assert evaluate_condition(self._cond("equals", "Yes"), {"1": "Yes"}) is True
        assert evaluate_condition(self._cond("equals", "Yes"), {"1": "No"}) is False

    def test_equals_strict_booleen(self):
        assert evaluate_condition(self._cond("equals", True), {"1": 1}) is False
        assert evaluate_condition(self._cond("equals", True), {"1": True}) is True

    def test_not_equals(self):
        assert evaluate_condition(self._cond("not_equals", "Yes"), {"1": "No"}) is True

    def test_greater_less(self):
        assert evaluate_condition(self._cond("greater_than", 5), {"1": "7"}) is True
        assert evaluate_condition(self._cond("less_than", 5), {"1": 7}) is False

    def test_greater_non_numerique(self):
        assert evaluate_condition(self._cond("greater_than", 5), {"1": "many"}) is False

    def test_contains_liste(self):
        assert evaluate_condition(self._cond("contains", "Sleep"), {"1": ["Sleep", "Mood"]}) is True
        assert evaluate_condition(self._cond("contains", "Appetite"), {"1": ["Sleep"]}) is False

    def test_contains_texte_insensible_casse(self):
        assert evaluate_condition(self._cond("contains", "PANIC"), {"1": "panic attacks"}) is True

    def test_cle_normalisee(self):
        condition = Condition(question_id="1", operator=ConditionOperator.EQUALS, value="Yes")
        assert evaluate_condition(condition, {"1": "Yes"}) is True


class TestEvaluateRule:
    def test_and_or(self):
        rule_and = ConditionalRule.from_dict({
            "conditions": [
                {"question_id": 1, "operator": "equals", "value": "a"},
                {"question_id": 2, "operator": "equals", "value": "b"},
            ],
            "combinator": "AND",
        })
        rule_or = ConditionalRule.from_dict({"conditions": rule_and.conditions, "combinator": "OR"})
        answers = {"1": "a", "2": "z"}

        assert evaluate_rule(rule_and, answers) is False
        assert evaluate_rule(rule_or, answers) is True


# ── Visibilité ────────────────────────────────────────────────────────────────

class TestVisibilite:
    def test_show_apparait_apres_reponse(self):
        engine = ConditionalLogicEngine(_questionnaire(q4_logic=_logic(3, "equals", True)))
        assert 4 not in _ids(engine.get_visible_questions())

        engine.update_answers([Answer(3, True)])
        assert 4 in _ids(engine.get_visible_questions())
        assert engine.is_question_visible(4) is True

    def test_hide(self):
        engine = ConditionalLogicEngine(
            _questionnaire(q4_logic=_logic(3, "equals", False, action="hide")),
            [Answer(3, False)],
        )
        assert _ids(engine.get_visible_questions()) == [1, 2, 3]

    def test_require_ne_masque_pas(self):
        engine = ConditionalLogicEngine(_questionnaire(q4_logic=_logic(3, "equals", True, action="require")))
        assert 4 in _ids(engine.get_visible_questions())

    def test_ordre_par_order(self):
        questions = [
            make_question(id="b", order=2),
            make_question(id="a", order=1),
        ]
        assert _ids(ConditionalLogicEngine(questions).get_visible_questions()) == ["a", "b"]

    def test_question_inconnue(self):
        assert ConditionalLogicEngine(_questionnaire()).is_question_visible(99) is False

    def test_references_cycliques_sans_boucle(self):
        questions = [
            make_question(id=1, order=1, conditional_logic=_logic(2, "equals", "x")),
            make_question(id=2, order=2, conditional_logic=_logic(1, "equals", "y")),
        ]
        engine = ConditionalLogicEngine(questions)
        assert engine.get_visible_questions() == []


# ── Obligation ────────────────────────────────────────────────────────────────

class TestObligation:
    def test_require_dynamique(self):
        engine = ConditionalLogicEngine(
            _questionnaire(q4_logic=_logic(3, "equals", True, action="require")),
            [Answer(1, "Several days"), Answer(3, True)],
        )
        assert engine.is_question_required(4) is True
        assert engine.validate_required_questions() == {"is_valid": False, "missing_questions": [4]}

    def test_question_masquee_jamais_manquante(self):
        engine = ConditionalLogicEngine([
            make_question(id=1, order=1),
            make_question(id=2, order=2, required=True, conditional_logic=_logic(1, "equals", "yes")),
        ])
        assert engine.validate_required_questions() == {"is_valid": True, "missing_questions": []}

    def test_reponse_vide_manquante(self):
        engine = ConditionalLogicEngine(_questionnaire(), [Answer(1, "")])
        assert engine.validate_required_questions()["missing_questions"] == [1]


# ── Progression ───────────────────────────────────────────────────────────────

class TestProgression:
    def test_arrondi(self):
        engine = ConditionalLogicEngine(
            [make_question(id=i, order=i) for i in (1, 2, 3)],
            [Answer(1, "a")],
        )
        assert engine.get_progress() == {"current": 1, "total": 3, "percentage": 33}

    def test_demi_arrondi_superieur(self):
        engine = ConditionalLogicEngine(
            [make_question(id=i, order=i) for i in range(1, 9)],
            [Answer(i, "a") for i in range(1, 6)],
        )
        # 5/8 = 62.5 %
        assert engine.get_progress()["percentage"] == 63

    def test_questionnaire_vide(self):
        assert ConditionalLogicEngine([]).get_progress() == {"current": 0, "total": 0, "percentage": 0}

    def test_questions_masquees_exclues(self):
        engine = ConditionalLogicEngine(
            _questionnaire(q4_logic=_logic(3, "equals", True)),
            [Answer(1, "Several days")],
        )
        assert engine.get_progress() == {"current": 1, "total": 3, "percentage": 33}


# ── Terminaison anticipée ─────────────────────────────────────────────────────

class TestTerminaison:
    def _engine(self, answers=()):
        return ConditionalLogicEngine(
            _questionnaire(q1_logic=_logic(1, "equals", "Not at all", action="end_survey")),
            answers,
        )

    def test_non_declenchee(self):
        engine = self._engine([Answer(1, "Several days")])
        assert engine.is_terminated is False
        assert engine.get_termination_state() == {
            "early_termination": False,
            "trigger_question_id": None,
            "total_questions_shown": 4,
            "questions_skipped": 0,
        }

    def test_declenchee_masque_la_suite(self):
        engine = self._engine([Answer(1, "Not at all")])
        assert engine.is_terminated is True
        assert _ids(engine.get_visible_questions()) == [1]
        assert engine.get_termination_state() == {
            "early_termination": True,
            "trigger_question_id": 1,
            "total_questions_shown": 1,
            "questions_skipped": 3,
        }

    def test_definitive_apres_changement(self):
        engine = self._engine([Answer(1, "Not at all")])
        engine.update_answers([Answer(1, "Several days"), Answer(2, "fine")])

        assert engine.is_terminated is True
        assert _ids(engine.get_visible_questions()) == [1]

    def test_completion_path(self):
        engine = self._engine([Answer(1, "Not at all")])
        metadata = engine.get_completion_metadata()
        assert metadata["completion_path"] == [1]
        assert metadata["early_termination"] is True


# ── Navigation / texte dynamique ──────────────────────────────────────────────

class TestNavigation:
    def test_question_suivante_saute_les_masquees(self):
        engine = ConditionalLogicEngine(_questionnaire(q4_logic=_logic(3, "equals", True)))
        assert engine.get_next_question(2).id == 3
        assert engine.get_next_question(3) is None

    def test_question_courante_inconnue(self):
        assert ConditionalLogicEngine(_questionnaire()).get_next_question(42) is None

    def test_texte_dynamique(self):
        questions = [
            make_question(id=1, order=1, text="Your name?"),
            make_question(id=2, order=2, text="Thanks {{1.value}}, how are you?"),
            make_question(id=3, order=3, text="About {{9.value}}"),
        ]
        engine = ConditionalLogicEngine(questions, [Answer(1, "Sam")])
        assert engine.get_dynamic_question_text(2) == "Thanks Sam, how are you?"
        assert engine.get_dynamic_question_text(3) == "About {{9.value}}"

    def test_answers_snapshot(self):
        engine = ConditionalLogicEngine(_questionnaire(), [Answer(1, "a"), Answer(1, "b")])
        assert engine.answers == {"1": "b"}


# ── find_logic_issues ─────────────────────────────────────────────────────────

class TestFindLogicIssues:
    def test_questionnaire_sain(self):
        assert find_logic_issues(_questionnaire(q4_logic=_logic(3, "equals", True))) == []

    def test_reference_inconnue(self):
        issues = find_logic_issues(_questionnaire(q4_logic=_logic(12, "equals", True)))
        assert issues == ["Question 4 references unknown question 12"]

    def test_reference_ulterieure(self):
        questions = [
            make_question(id=1, order=1, conditional_logic=_logic(2, "equals", "x")),
            make_question(id=2, order=2),
        ]
        assert find_logic_issues(questions) == [
            "Question 1 references question 2 which does not come before it"
        ]

    def test_auto_reference(self):
        questions = [make_question(id=1, order=1, conditional_logic=_logic(1, "equals", "x"))]
        assert find_logic_issues(questions) == ["Question 1 references itself"]

    def test_auto_reference_end_survey_admise(self):
        questions = _questionnaire(q1_logic=_logic(1, "equals", "Not at all", action="end_survey"))
        assert find_logic_issues(questions) == []
