# mindtrack/shared/errors.py
"""
Exceptions métier partagées engine / services.

Les routers les traduisent en HTTPException :
    ScoringConfigNotFound / ScoringRuleNotFound → 404
    UnsupportedScoringMethod                    → 422
    InvalidScoringConfiguration                 → 400
    DefaultConfigConflict                       → 409
Côté engine, les erreurs de validation (réponses, configurations) ne sont
PAS des exceptions : ce sont des listes de messages. Seul le service les
convertit en InvalidScoringConfiguration, pour les bornes inversées seulement.
"""


class ScoringConfigNotFound(LookupError):

    def __init__(self, config_id, message: str = None):
        self.config_id = config_id
        super().__init__(message or f"Scoring configuration not found: {config_id}")


class DefaultConfigNotFound(ScoringConfigNotFound):

    def __init__(self, questionnaire_id):
        self.questionnaire_id = questionnaire_id
        super().__init__(
            None,
            f"No default scoring configuration found for questionnaire: {questionnaire_id}",
        )


class ScoringRuleNotFound(LookupError):

    def __init__(self, rule_id):
        self.rule_id = rule_id
        super().__init__(f"Scoring rule not found: {rule_id}")


class UnsupportedScoringMethod(ValueError):

    def __init__(self, method):
        self.method = method
        super().__init__(f"Unsupported scoring method: {method}")


class FormulaError(ValueError):
    """Formule custom invalide (syntaxe, variable inconnue, division par zéro)."""


class InvalidScoringConfiguration(ValueError):
    """Levée par le service quand les bornes min_score / max_score sont inversées."""

    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class DefaultConfigConflict(RuntimeError):
    """Une écriture concurrente a posé un autre défaut sur le même questionnaire."""

    def __init__(self, questionnaire_id):
        self.questionnaire_id = questionnaire_id
        super().__init__(
            f"Another default scoring configuration was set concurrently for questionnaire: {questionnaire_id}"
        )
