# engine/validation/rules.py
"""
Catalogue des règles de validation par type de question — ZÉRO accès DB.

Contrat : validate_answer(question, value) -> ValidationResult

Politique :
    1. required + valeur vide  → ["This field is required"], rien d'autre
    2. optionnel + valeur vide → valide
    3. sinon, toutes les règles du type sont vérifiées et TOUTES les
       violations sont accumulées (pas de court-circuit)

Les contraintes viennent de question.validation_rules. Un type inconnu
n'a aucune règle : la valeur passe, jamais d'exception.

Appelé par : modules/questionnaire/service.py
"""
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, List, Optional

from mindtrack.engine.domain import answer_map, is_empty, question_key
from mindtrack.shared.enums import QuestionType

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "This field is required"

TIME_PATTERN = re.compile(r"^([01]?[0-9]|2[0-3]):[0-5][0-9]$")
HTML_TAG_PATTERN = re.compile(r"<[^>]*>")
FILE_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


@dataclass
class ValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {"is_valid": self.is_valid, "errors": list(self.errors)}


# ── Helpers ───────────────────────────────────────────────────────────────────

def _to_number(value: Any) -> Optional[float]:
    """float fini ou None. Les booléens ne sont pas des nombres."""
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str) and value.strip():
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _fmt(number: Any) -> str:
    """5.0 → "5", 2.5 → "2.5"."""
    if isinstance(number, float) and number.is_integer():
        return str(int(number))
    return str(number)


def format_file_size(size: float) -> str:
    if size <= 0:
        return "0 Bytes"
    index = max(0, min(int(math.floor(math.log(size, 1024))), len(FILE_SIZE_UNITS) - 1))
    return f"{_fmt(round(size / 1024 ** index, 2))} {FILE_SIZE_UNITS[index]}"


def _range_errors(number: float, rules: Dict) -> List[str]:
    errors = []
    min_value = _to_number(rules.get("min_value"))
    max_value = _to_number(rules.get("max_value"))
    if min_value is not None and number < min_value:
        errors.append(f"Value must be at least {_fmt(rules['min_value'])}")
    if max_value is not None and number > max_value:
        errors.append(f"Value must not exceed {_fmt(rules['max_value'])}")
    return errors


def _decimal_places(value: Any) -> int:
    try:
        exponent = Decimal(str(value).strip()).as_tuple().exponent
    except InvalidOperation:
        return 0
    return max(0, -exponent) if isinstance(exponent, int) else 0


def _parse_moment(value: Any) -> Optional[datetime]:
    """ISO 8601 → datetime naïf UTC. Accepte le suffixe Z."""
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text[-1] in "Zz":
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc).replace(tzinfo=None)
    return moment


def _is_date_only(bound: Any) -> bool:
    if isinstance(bound, datetime):
        return False
    if isinstance(bound, date):
        return True
    return isinstance(bound, str) and "T" not in bound and " " not in bound.strip()


def _file_attr(descriptor: Any, key: str) -> Any:
    if isinstance(descriptor, dict):
        return descriptor.get(key)
    return getattr(descriptor, key, None)


def _type_allowed(mime: str, name: str, allowed: Iterable[str]) -> bool:
    mime = (mime or "").lower()
    name = (name or "").lower()
    for entry in allowed:
        entry = str(entry).lower()
        if entry == mime:
            return True
        if entry.endswith("/*") and mime.startswith(entry[:-1]):
            return True
        if entry.startswith(".") and name.endswith(entry):
            return True
    return False


# ── Règles par famille de types ───────────────────────────────────────────────

def _check_text(question: Any, value: Any, rules: Dict) -> List[str]:
    if not isinstance(value, str):
        return ["Value must be text"]

    errors = []
    text = value
    if question.type == QuestionType.RICH_TEXT:
        text = HTML_TAG_PATTERN.sub("", value)

    min_length = _to_number(rules.get("min_length"))
    max_length = _to_number(rules.get("max_length"))
    if min_length is not None and len(text) < min_length:
        errors.append(f"Text must be at least {_fmt(rules['min_length'])} characters long")
    if max_length is not None and len(text) > max_length:
        errors.append(f"Text must not exceed {_fmt(rules['max_length'])} characters")

    pattern = rules.get("pattern")
    if pattern:
        try:
            if not re.search(pattern, text):
                errors.append("Text format is invalid")
        except re.error:
            logger.warning(
                "VALIDATION_PATTERN_INVALID",
                extra={"question_id": getattr(question, "id", None), "pattern": pattern},
            )
    return errors


def _check_multiple_choice(question: Any, value: Any, rules: Dict) -> List[str]:
    if not isinstance(value, (list, tuple)):
        return ["Value must be an array of selections"]

    errors = []
    min_selections = _to_number(rules.get("min_selections"))
    max_selections = _to_number(rules.get("max_selections"))
    if min_selections is not None and len(value) < min_selections:
        errors.append(f"Please select at least {_fmt(rules['min_selections'])} option(s)")
    if max_selections is not None and len(value) > max_selections:
        errors.append(f"Please select at most {_fmt(rules['max_selections'])} option(s)")
    return errors


def _check_number(question: Any, value: Any, rules: Dict) -> List[str]:
    number = _to_number(value)
    if number is None:
        return ["Value must be a valid number"]

    errors = []
    if question.type == QuestionType.NUMBER and not number.is_integer():
        errors.append("Value must be a whole number")
    errors.extend(_range_errors(number, rules))

    places = _to_number(rules.get("decimal_places"))
    if question.type == QuestionType.DECIMAL and places is not None:
        if _decimal_places(value) > places:
            errors.append(f"Value must have at most {_fmt(rules['decimal_places'])} decimal places")
    return errors


def _check_rating(question: Any, value: Any, rules: Dict) -> List[str]:
    number = _to_number(value)
    if number is None:
        return ["Please provide a rating"]
    return _range_errors(number, rules)


def _check_likert(question: Any, value: Any, rules: Dict) -> List[str]:
    # Une likert peut être répondue par son libellé : seules les valeurs
    # numériques sont bornées.
    number = _to_number(value)
    if number is None:
        return []
    return _range_errors(number, rules)


def _check_date(question: Any, value: Any, rules: Dict) -> List[str]:
    moment = _parse_moment(value)
    if moment is None:
        return ["Value must be a valid date"]

    errors = []
    for key, message, violated in (
        ("min_date", "Date must be on or after {}", lambda a, b: a < b),
        ("max_date", "Date must be on or before {}", lambda a, b: a > b),
    ):
        raw = rules.get(key)
        if not raw:
            continue
        bound = _parse_moment(raw)
        if bound is None:
            logger.warning(
                "VALIDATION_DATE_BOUND_INVALID",
                extra={"question_id": getattr(question, "id", None), key: raw},
            )
            continue
        if question.type == QuestionType.DATE or _is_date_only(raw):
            left, right = moment.date(), bound.date()
        else:
            left, right = moment, bound
        if violated(left, right):
            errors.append(message.format(raw))
    return errors


def _check_time(question: Any, value: Any, rules: Dict) -> List[str]:
    if not isinstance(value, str) or not TIME_PATTERN.match(value.strip()):
        return ["Value must be a valid time (HH:MM)"]
    return []


def _check_files(question: Any, value: Any, rules: Dict) -> List[str]:
    files = list(value) if isinstance(value, (list, tuple)) else [value]
    errors = []

    max_files = _to_number(rules.get("max_files"))
    if max_files is not None and len(files) > max_files:
        errors.append(f"Please upload at most {_fmt(rules['max_files'])} file(s)")

    max_size = _to_number(rules.get("max_file_size"))
    allowed = rules.get("allowed_file_types") or []
    images_only = question.type == QuestionType.IMAGE_UPLOAD

    for descriptor in files:
        name = _file_attr(descriptor, "name") or "file"
        mime = _file_attr(descriptor, "type") or ""
        size = _to_number(_file_attr(descriptor, "size"))

        if max_size is not None and size is not None and size > max_size:
            errors.append(f'File "{name}" is too large. Maximum size is {format_file_size(max_size)}')
        if allowed and not _type_allowed(mime, name, allowed):
            errors.append(f'File "{name}" has an invalid type. Allowed types: {", ".join(allowed)}')
        if images_only and not mime.lower().startswith("image/"):
            errors.append(f'File "{name}" must be an image')
    return errors


def _check_boolean(question: Any, value: Any, rules: Dict) -> List[str]:
    if isinstance(value, bool):
        return []
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return []
    return ["Please select an option"]


def _no_rules(question: Any, value: Any, rules: Dict) -> List[str]:
    return []


CHECKS: Dict[QuestionType, Callable[[Any, Any, Dict], List[str]]] = {
    QuestionType.TEXT:                  _check_text,
    QuestionType.TEXTAREA:              _check_text,
    QuestionType.RICH_TEXT:             _check_text,
    QuestionType.NUMBER:                _check_number,
    QuestionType.DECIMAL:               _check_number,
    QuestionType.SINGLE_CHOICE:         _no_rules,
    QuestionType.MULTIPLE_CHOICE:       _check_multiple_choice,
    QuestionType.DROPDOWN:              _no_rules,
    QuestionType.RATING:                _check_rating,
    QuestionType.STAR_RATING:           _check_rating,
    QuestionType.LIKERT:                _check_likert,
    QuestionType.NPS:                   _check_rating,
    QuestionType.SEMANTIC_DIFFERENTIAL: _check_rating,
    QuestionType.SLIDER:                _check_rating,
    QuestionType.DATE:                  _check_date,
    QuestionType.TIME:                  _check_time,
    QuestionType.DATETIME:              _check_date,
    QuestionType.FILE_UPLOAD:           _check_files,
    QuestionType.IMAGE_UPLOAD:          _check_files,
    QuestionType.BOOLEAN:               _check_boolean,
    QuestionType.COUNTRY:               _no_rules,
    QuestionType.STATE:                 _no_rules,
    QuestionType.CITY:                  _no_rules,
}


# ── API publique ──────────────────────────────────────────────────────────────

def validate_answer(question: Any, value: Any) -> ValidationResult:
    if is_empty(value):
        if getattr(question, "required", False):
            return ValidationResult(is_valid=False, errors=[REQUIRED_MESSAGE])
        return ValidationResult(is_valid=True, errors=[])

    check = CHECKS.get(getattr(question, "type", None), _no_rules)
    rules = getattr(question, "validation_rules", None) or {}
    errors = check(question, value, rules)
    return ValidationResult(is_valid=not errors, errors=errors)


def validate_answers(questions: Iterable[Any], answers: Iterable[Any]) -> Dict[str, List[str]]:
    """
    Valide toutes les questions d'une réponse.
    Retourne {question_id: erreurs} pour les seules questions invalides.
    """
    values = answer_map(answers)
    invalid: Dict[str, List[str]] = {}
    for question in questions:
        result = validate_answer(question, values.get(question_key(question.id)))
        if not result.is_valid:
            invalid[question_key(question.id)] = result.errors
    return invalid
