# mindtrack/modules/questionnaire/schemas.py
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional, Union

from mindtrack.engine.domain import Answer, Question
from mindtrack.shared.enums import Combinator, ConditionOperator, LogicAction


# ── Questions / réponses ───────────────────────────────────

class ConditionIn(BaseModel):
    question_id: Union[int, str]
    operator: ConditionOperator
    value: Any = None


class ConditionalRuleIn(BaseModel):
    conditions: List[ConditionIn] = []
    combinator: Combinator = Combinator.AND
    action: LogicAction = LogicAction.SHOW


class QuestionIn(BaseModel):
    id: Union[int, str]
    type: str                       # QuestionType ; un type inconnu n'est pas une erreur
    order: int = 0
    text: str = ""
    required: bool = False
    options: List[str] = []
    validation_rules: Dict[str, Any] = {}
    conditional_logic: Optional[ConditionalRuleIn] = None
    metadata: Dict[str, Any] = {}

    def to_domain(self) -> Question:
        return Question.from_dict(self.model_dump())


class AnswerIn(BaseModel):
    question_id: Union[int, str]
    value: Any = None

    def to_domain(self) -> Answer:
        return Answer(question_id=self.question_id, value=self.value)


# ── Logique conditionnelle ─────────────────────────────────

class LogicEvaluateIn(BaseModel):
    questions: List[QuestionIn]
    answers: List[AnswerIn] = []
    current_question_id: Optional[Union[int, str]] = None


class ProgressOut(BaseModel):
    current: int
    total: int
    percentage: int


class RequiredCheckOut(BaseModel):
    is_valid: bool
    missing_questions: List[Union[int, str]] = []


class CompletionOut(BaseModel):
    early_termination: bool
    trigger_question_id: Optional[Union[int, str]] = None
    total_questions_shown: int
    questions_skipped: int
    completion_path: List[Union[int, str]] = []


class LogicEvaluateOut(BaseModel):
    visible_question_ids: List[Union[int, str]]
    required_question_ids: List[Union[int, str]]
    progress: ProgressOut
    required_check: RequiredCheckOut
    completion: CompletionOut
    next_question_id: Optional[Union[int, str]] = None
    question_texts: Dict[str, str] = {}


class LogicIssuesOut(BaseModel):
    is_valid: bool
    issues: List[str] = []


# ── Validation des réponses ────────────────────────────────

class AnswerValidateIn(BaseModel):
    question: QuestionIn
    value: Any = None


class ValidationOut(BaseModel):
    is_valid: bool
    errors: List[str] = []


class ResponseValidateIn(BaseModel):
    questions: List[QuestionIn]
    answers: List[AnswerIn] = []
    only_visible: bool = Field(True, description="Ignorer les questions masquées par la logique conditionnelle")


class ResponseValidateOut(BaseModel):
    is_valid: bool
    errors: Dict[str, List[str]] = {}
    missing_questions: List[Union[int, str]] = []
