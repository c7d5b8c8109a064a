"""
Request and response shapes for content generation
Requests are validated before any API call; responses are validated
before anything is shown to the user.
"""

from datetime import date
from typing import List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from backend.errors import InvalidRequest
from utils.config import QUIZ_MIN_QUESTIONS, QUIZ_MAX_QUESTIONS, STUDY_HOURS_RANGE

Difficulty = Literal["easy", "medium", "hard"]

RequestT = TypeVar("RequestT", bound=BaseModel)


def _first_error(exc: ValidationError) -> str:
    error = exc.errors()[0]
    field = ".".join(str(part) for part in error.get("loc", ()))
    message = error.get("msg", "invalid value")
    return f"{field}: {message}" if field else message


def build_request(model: Type[RequestT], **values) -> RequestT:
    """Construct a request model, turning pydantic errors into InvalidRequest"""
    try:
        return model(**values)
    except ValidationError as e:
        raise InvalidRequest(_first_error(e)) from e


class _Request(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)


class _Response(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


# Requests

class QuizRequest(_Request):
    """A quiz on one topic (or the whole syllabus)"""
    topic: str = Field(min_length=1)
    source_text: str = Field(min_length=1)
    difficulty: Difficulty = "medium"
    num_questions: int = Field(default=5, ge=QUIZ_MIN_QUESTIONS, le=QUIZ_MAX_QUESTIONS)


class FlashcardRequest(_Request):
    topic: str = Field(min_length=1)
    source_text: str = Field(min_length=1)


class PriorTurn(_Request):
    role: Literal["user", "assistant"]
    content: str


class AnswerRequest(_Request):
    """A tutor question grounded in the source text, or in the mind map outline when the text is missing"""
    question: str = Field(min_length=1)
    source_text: Optional[str] = None
    mind_map_outline: Optional[str] = None
    prior_turns: List[PriorTurn] = Field(default_factory=list)

    @model_validator(mode="after")
    def _needs_material(self):
        if not self.source_text and not self.mind_map_outline:
            raise ValueError("either source text or a mind map is required")
        return self

    @property
    def material(self) -> str:
        return self.source_text or self.mind_map_outline


class StudyPlanRequest(_Request):
    exam_date: date
    daily_hours: float = Field(ge=STUDY_HOURS_RANGE[0], le=STUDY_HOURS_RANGE[1])
    style: str = Field(min_length=1)
    intensity: str = Field(min_length=1)
    source_text: str = Field(min_length=1)

    @field_validator("exam_date")
    @classmethod
    def _not_in_past(cls, value: date) -> date:
        if value < date.today():
            raise ValueError("exam date cannot be in the past")
        return value


# Responses

class QuizQuestion(_Response):
    """Represents a multiple-choice quiz question"""
    question: str = Field(min_length=1)
    options: List[str] = Field(min_length=2)
    correct_answer: str = Field(alias="correctAnswer")
    explanation: str = ""

    @model_validator(mode="after")
    def _answer_is_an_option(self):
        if self.correct_answer not in self.options:
            raise ValueError(f"correct answer {self.correct_answer!r} is not one of the options")
        return self

    def format_for_display(self) -> str:
        """Format question for display to user"""
        choices_text = "\n".join([f"{chr(65+i)}. {choice}" for i, choice in enumerate(self.options)])
        return f"{self.question}\n\n{choices_text}"


class QuizResponse(_Response):
    quiz: List[QuizQuestion] = Field(min_length=1)


class Flashcard(_Response):
    question: str = Field(min_length=1)
    answer: str = Field(min_length=1)


class FlashcardResponse(_Response):
    flashcards: List[Flashcard] = Field(min_length=1)


class TutorAnswer(_Response):
    answer: str = Field(min_length=1)
    from_syllabus: bool = Field(alias="fromSyllabus")


class StudyPlanResponse(_Response):
    study_schedule: str = Field(alias="studySchedule", min_length=1)
