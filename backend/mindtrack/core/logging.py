# backend/mindtrack/core/logging.py
"""
Configuration du logging applicatif.

Chaque module déclare `logger = logging.getLogger(__name__)` et émet des
événements en MAJUSCULES avec le contexte dans `extra` :
    logger.info("SCORE_CALCULATED", extra={"response_id": ..., "config_id": ...})

Le formatter ajoute ce contexte en fin de ligne pour qu'il reste lisible
dans une console comme dans un agrégateur.
"""
import logging
import sys

_RESERVED = set(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Formatter texte qui sérialise les champs `extra` en key=value."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = {
            key: value for key, value in record.__dict__.items()
            if key not in _RESERVED and not key.startswith("_")
        }
        if not context:
            return base
        rendered = " ".join(f"{key}={value!r}" for key, value in sorted(context.items()))
        return f"{base} | {rendered}"


def setup_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ContextFormatter("%(asctime)s %(levelname)s %(name)s %(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper())

    # SQLAlchemy gère son propre echo via DB_ECHO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
