# mindtrack/shared/models/__init__.py
"""
Point d'entrée unique pour tous les modèles SQLAlchemy.

TOUJOURS importer les modèles depuis ce fichier :
  from mindtrack.shared.models import ScoringConfiguration, CalculatedScore, ...

→ Garantit que tous les modèles sont enregistrés dans Base.metadata
  avant la création des tables (Alembic, create_all).
"""

from mindtrack.shared.models.Scoring import (
    ScoringConfiguration,
    ScoringRule,
    ScoreCategory,
    CalculatedScore,
)

__all__ = [
    "ScoringConfiguration",
    "ScoringRule",
    "ScoreCategory",
    "CalculatedScore",
]
