# main.py
"""
Point d'entrée de l'API MindTrack.
Enregistre les modules via leurs routers.

Architecture : modules verticaux (questionnaire, scoring) + engine pur transversal.
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mindtrack.core.config import settings
from mindtrack.core.database import SessionLocal
from mindtrack.core.logging import setup_logging

from mindtrack.modules.questionnaire.router import router as questionnaire_router
from mindtrack.modules.scoring.router       import router as scoring_router

setup_logging(settings.LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.SEED_DEFAULT_CONFIGS:
        from mindtrack.seed.default_configs import seed
        async with SessionLocal() as db:
            await seed(db)
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    version="2.0.0",
    docs_url="/docs" if settings.DEBUG else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(questionnaire_router)
app.include_router(scoring_router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": "2.0.0"}
