# mindtrack/shared/deps.py
"""
Dépendances FastAPI réutilisables dans tous les routers.
Injectées via Depends() — jamais appelées directement.
"""
from typing import Annotated, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from mindtrack.core.database import get_db


async def get_actor_id(x_actor_id: Annotated[Optional[str], Header()] = None) -> Optional[str]:
    """
    Auteur d'une modification (created_by). L'authentification est gérée
    en amont par la passerelle, qui transmet l'identifiant dans X-Actor-Id.
    """
    return x_actor_id


# ── Type aliases pour les routers ─────────────────────────
DbDep    = Annotated[AsyncSession, Depends(get_db)]
ActorDep = Annotated[Optional[str], Depends(get_actor_id)]
