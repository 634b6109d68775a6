# modules/scoring/router.py
"""
Endpoints du store de scoring.
Configurations → Règles → Calcul → Scores persistés → Analytics

Règle : ce fichier ne touche jamais la DB ni l'engine.
Tout passe par ScoringService.
"""
from fastapi import APIRouter, HTTPException, Query, Response, status
from typing import List, Optional

from mindtrack.shared.deps import ActorDep, DbDep
from mindtrack.shared.errors import (
    DefaultConfigConflict,
    InvalidScoringConfiguration,
    ScoringConfigNotFound,
    ScoringRuleNotFound,
    UnsupportedScoringMethod,
)
from mindtrack.modules.scoring.service import ScoringService
from mindtrack.modules.scoring.schemas import (
    CalculateScoreIn,
    ConfigValidationOut,
    ScoreCategoryIn,
    ScoreCategoryOut,
    ScoreResultOut,
    ScoringAnalyticsOut,
    ScoringConfigIn,
    ScoringConfigOut,
    ScoringConfigUpdate,
    ScoringRuleIn,
    ScoringRuleOut,
    ScoringRuleUpdate,
)

router = APIRouter(prefix="/scoring", tags=["Scoring"])
service = ScoringService()


def _not_found(exc: LookupError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))


# ─────────────────────────────────────────────
# CONFIGURATIONS
# ─────────────────────────────────────────────

@router.get(
    "/configs",
    response_model=List[ScoringConfigOut],
    summary="Configurations d'un questionnaire",
)
async def list_configurations(
    db: DbDep,
    questionnaire_id: str = Query(...),
    active_only: bool = Query(False),
):
    return await service.list_configurations(db, questionnaire_id, active_only=active_only)


@router.post(
    "/configs",
    response_model=ScoringConfigOut,
    status_code=status.HTTP_201_CREATED,
    summary="Créer une configuration de scoring",
    description=(
        "Seules des bornes inversées sont refusées (400) ; une couverture "
        "incomplète des règles est acceptée (brouillon, voir /configs/validate). "
        "Avec is_default=true, les autres configurations du questionnaire "
        "perdent leur statut par défaut dans la même transaction."
    ),
)
async def create_configuration(payload: ScoringConfigIn, db: DbDep, actor_id: ActorDep):
    try:
        return await service.create_configuration(db, payload, created_by=actor_id)
    except InvalidScoringConfiguration as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.errors)
    except DefaultConfigConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.post(
    "/configs/validate",
    response_model=ConfigValidationOut,
    summary="Valider une configuration sans l'enregistrer",
)
async def validate_configuration(payload: ScoringConfigIn):
    return service.validate_configuration(payload)


@router.get(
    "/configs/{config_id}",
    response_model=ScoringConfigOut,
    summary="Détail d'une configuration",
)
async def get_configuration(config_id: str, db: DbDep):
    try:
        return await service.get_configuration(db, config_id)
    except ScoringConfigNotFound as e:
        raise _not_found(e)


@router.patch(
    "/configs/{config_id}",
    response_model=ScoringConfigOut,
    summary="Modifier une configuration",
)
async def update_configuration(config_id: str, payload: ScoringConfigUpdate, db: DbDep):
    try:
        return await service.update_configuration(db, config_id, payload)
    except ScoringConfigNotFound as e:
        raise _not_found(e)
    except InvalidScoringConfiguration as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.errors)
    except DefaultConfigConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.delete(
    "/configs/{config_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Supprimer une configuration (les scores calculés sont conservés)",
)
async def delete_configuration(config_id: str, db: DbDep):
    if not await service.delete_configuration(db, config_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Scoring configuration not found: {config_id}",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/configs/{config_id}/default",
    response_model=ScoringConfigOut,
    summary="Définir comme configuration par défaut du questionnaire",
)
async def set_default_configuration(config_id: str, db: DbDep):
    try:
        return await service.set_default_configuration(db, config_id)
    except ScoringConfigNotFound as e:
        raise _not_found(e)
    except DefaultConfigConflict as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))


@router.get(
    "/questionnaires/{questionnaire_id}/default-config",
    response_model=ScoringConfigOut,
    summary="Configuration par défaut d'un questionnaire",
)
async def get_default_configuration(questionnaire_id: str, db: DbDep):
    config = await service.get_default_configuration(db, questionnaire_id)
    if not config:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No default scoring configuration found for questionnaire: {questionnaire_id}",
        )
    return config


# ─────────────────────────────────────────────
# RÈGLES
# ─────────────────────────────────────────────

@router.post(
    "/configs/{config_id}/rules",
    response_model=ScoringRuleOut,
    status_code=status.HTTP_201_CREATED,
    summary="Ajouter une règle de risque",
)
async def add_rule(config_id: str, payload: ScoringRuleIn, db: DbDep):
    try:
        return await service.add_rule(db, config_id, payload)
    except ScoringConfigNotFound as e:
        raise _not_found(e)


@router.patch(
    "/configs/{config_id}/rules/{rule_id}",
    response_model=ScoringRuleOut,
    summary="Modifier une règle de risque",
)
async def update_rule(config_id: str, rule_id: str, payload: ScoringRuleUpdate, db: DbDep):
    try:
        return await service.update_rule(db, config_id, rule_id, payload)
    except (ScoringConfigNotFound, ScoringRuleNotFound) as e:
        raise _not_found(e)


@router.delete(
    "/configs/{config_id}/rules/{rule_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Supprimer une règle de risque",
)
async def delete_rule(config_id: str, rule_id: str, db: DbDep):
    try:
        deleted = await service.delete_rule(db, config_id, rule_id)
    except ScoringConfigNotFound as e:
        raise _not_found(e)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Scoring rule not found: {rule_id}",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─────────────────────────────────────────────
# CATÉGORIES
# ─────────────────────────────────────────────

@router.post(
    "/categories",
    response_model=ScoreCategoryOut,
    status_code=status.HTTP_201_CREATED,
    summary="Créer une catégorie de score",
)
async def create_category(payload: ScoreCategoryIn, db: DbDep):
    return await service.create_category(db, payload)


@router.get(
    "/questionnaires/{questionnaire_id}/categories",
    response_model=List[ScoreCategoryOut],
    summary="Catégories d'un questionnaire",
)
async def get_categories(questionnaire_id: str, db: DbDep):
    return await service.get_categories(db, questionnaire_id)


# ─────────────────────────────────────────────
# CALCUL & SCORES
# ─────────────────────────────────────────────

@router.post(
    "/configs/{config_id}/calculate",
    response_model=ScoreResultOut,
    summary="Calculer (et enregistrer) le score d'une réponse",
    description=(
        "Applique la logique conditionnelle (questions visibles uniquement), "
        "calcule le score, classe le risque et écrase le score précédent "
        "pour le couple (response_id, config_id)."
    ),
)
async def calculate_score(config_id: str, payload: CalculateScoreIn, db: DbDep):
    try:
        return await service.calculate_score(db, config_id, payload)
    except ScoringConfigNotFound as e:
        raise _not_found(e)
    except UnsupportedScoringMethod as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.post(
    "/questionnaires/{questionnaire_id}/calculate",
    response_model=ScoreResultOut,
    summary="Calculer le score avec la configuration par défaut",
)
async def calculate_default_score(questionnaire_id: str, payload: CalculateScoreIn, db: DbDep):
    try:
        return await service.calculate_default_score(db, questionnaire_id, payload)
    except ScoringConfigNotFound as e:
        raise _not_found(e)
    except UnsupportedScoringMethod as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))


@router.get(
    "/responses/{response_id}/scores",
    response_model=List[ScoreResultOut],
    summary="Scores calculés d'une réponse",
)
async def get_scores_for_response(response_id: str, db: DbDep):
    return await service.get_scores_for_response(db, response_id)


@router.get(
    "/responses/{response_id}/scores/{config_id}",
    response_model=ScoreResultOut,
    summary="Score d'une réponse pour une configuration",
)
async def get_score(response_id: str, config_id: str, db: DbDep):
    score = await service.get_score(db, response_id, config_id)
    if not score:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Score not found")
    return score


# ─────────────────────────────────────────────
# ANALYTICS
# ─────────────────────────────────────────────

@router.get(
    "/questionnaires/{questionnaire_id}/analytics",
    response_model=ScoringAnalyticsOut,
    summary="Agrégats des scores d'un questionnaire",
)
async def get_analytics(
    questionnaire_id: str,
    db: DbDep,
    config_id: Optional[str] = Query(None),
    days: Optional[int] = Query(None, ge=1),
):
    return await service.get_analytics(db, questionnaire_id, config_id=config_id, days=days)
