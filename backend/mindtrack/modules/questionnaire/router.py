# modules/questionnaire/router.py
"""
Endpoints d'évaluation d'un questionnaire en cours de réponse.

Sans état : le client envoie questions + réponses à chaque appel.
Utilisés par le rendu pour décider quoi afficher / exiger ensuite.
"""
from fastapi import APIRouter, status
from typing import List

from mindtrack.modules.questionnaire.service import QuestionnaireService
from mindtrack.modules.questionnaire.schemas import (
    AnswerValidateIn,
    LogicEvaluateIn,
    LogicEvaluateOut,
    LogicIssuesOut,
    QuestionIn,
    ResponseValidateIn,
    ResponseValidateOut,
    ValidationOut,
)

router = APIRouter(prefix="/questionnaires", tags=["Questionnaires"])
service = QuestionnaireService()


@router.post(
    "/logic/evaluate",
    response_model=LogicEvaluateOut,
    summary="Évaluer la logique conditionnelle",
    description=(
        "Questions visibles, obligatoires, progression, champs requis manquants "
        "et état de fin anticipée pour le snapshot de réponses fourni."
    ),
)
async def evaluate_logic(payload: LogicEvaluateIn):
    return service.evaluate_logic(payload)


@router.post(
    "/logic/check",
    response_model=LogicIssuesOut,
    summary="Vérifier les règles conditionnelles d'un questionnaire",
)
async def check_logic(questions: List[QuestionIn]):
    return service.check_logic(questions)


@router.post(
    "/answers/validate",
    response_model=ValidationOut,
    status_code=status.HTTP_200_OK,
    summary="Valider une réponse à une question",
)
async def validate_answer(payload: AnswerValidateIn):
    return service.validate_answer(payload)


@router.post(
    "/responses/validate",
    response_model=ResponseValidateOut,
    summary="Valider l'ensemble des réponses d'une session",
)
async def validate_response(payload: ResponseValidateIn):
    return service.validate_response(payload)
