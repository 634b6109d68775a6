# modules/questionnaire/service.py
"""
Évaluation d'un questionnaire en cours de réponse — sans état, sans DB.

Le rendu (front) envoie les questions + le snapshot des réponses ;
le service délègue aux engines :
    engine/logic/conditional.py  → visibilité, obligation, progression, fin anticipée
    engine/validation/rules.py   → contraintes par type de question
"""
import logging
from typing import Dict

from mindtrack.engine.domain import question_key
from mindtrack.engine.logic.conditional import ConditionalLogicEngine, find_logic_issues
from mindtrack.engine.validation.rules import REQUIRED_MESSAGE, validate_answer, validate_answers
from mindtrack.modules.questionnaire.schemas import (
    AnswerValidateIn,
    LogicEvaluateIn,
    ResponseValidateIn,
)

logger = logging.getLogger(__name__)


class QuestionnaireService:

    # ── Logique conditionnelle ────────────────────────────────

    def evaluate_logic(self, payload: LogicEvaluateIn) -> Dict:
        questions = [q.to_domain() for q in payload.questions]
        engine = ConditionalLogicEngine(questions, [a.to_domain() for a in payload.answers])

        visible = engine.get_visible_questions()
        next_question = None
        if payload.current_question_id is not None:
            next_question = engine.get_next_question(payload.current_question_id)

        return {
            "visible_question_ids":  [q.id for q in visible],
            "required_question_ids": [q.id for q in visible if engine.is_question_required(q.id)],
            "progress":              engine.get_progress(),
            "required_check":        engine.validate_required_questions(),
            "completion":            engine.get_completion_metadata(),
            "next_question_id":      next_question.id if next_question else None,
            "question_texts":        {
                question_key(q.id): engine.get_dynamic_question_text(q.id)
                for q in visible if "{{" in (q.text or "")
            },
        }

    def check_logic(self, questions) -> Dict:
        issues = find_logic_issues([q.to_domain() for q in questions])
        if issues:
            logger.info("QUESTIONNAIRE_LOGIC_ISSUES", extra={"issue_count": len(issues)})
        return {"is_valid": not issues, "issues": issues}

    # ── Validation des réponses ───────────────────────────────

    def validate_answer(self, payload: AnswerValidateIn) -> Dict:
        return validate_answer(payload.question.to_domain(), payload.value).to_dict()

    def validate_response(self, payload: ResponseValidateIn) -> Dict:
        """
        Valide une réponse complète. Avec only_visible, les questions masquées
        sont ignorées et l'obligation dynamique (règles require) est appliquée.
        """
        questions = [q.to_domain() for q in payload.questions]
        answers = [a.to_domain() for a in payload.answers]
        missing = []

        if payload.only_visible:
            engine = ConditionalLogicEngine(questions, answers)
            questions = engine.get_visible_questions()
            missing = engine.validate_required_questions()["missing_questions"]

        errors = validate_answers(questions, answers)
        for question_id in missing:
            errors.setdefault(question_key(question_id), [REQUIRED_MESSAGE])

        return {"is_valid": not errors, "errors": errors, "missing_questions": missing}
