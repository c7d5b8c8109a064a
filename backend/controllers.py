"""
View controllers for StudyMap
Each controller owns the transient interaction state of one page and wraps
the generation call behind it. Failures come back as ActionResult values;
pages only ever render them.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from backend.errors import (
    GenerationError, InvalidRequest, MalformedResponse, NotSignedIn, ServiceUnavailable,
    StorageQuotaExceeded, SyllabusNotFound
)
from backend.generation import ContentGenerator
from backend.mindmap import (
    average_top_level_importance, count_nodes, flatten_topic_paths, format_importance,
    top_level_importances
)
from backend.models import ChatTurn, MindMap, Syllabus
from backend.repository import SyllabusRepository
from backend.schemas import (
    Flashcard, FlashcardRequest, QuizQuestion, QuizRequest, StudyPlanRequest, build_request
)
from backend.uploads import extract_source_text, to_data_uri, validate_upload
from utils.config import ENTIRE_SYLLABUS
from utils.providers import ProviderError

logger = logging.getLogger(__name__)

OVERLOADED_MESSAGE = "The AI model is currently overloaded. Please try again in a few moments."
NOT_FROM_SYLLABUS_DISCLAIMER = (
    "This answer is not based on your syllabus. Please verify it against your course material."
)


@dataclass
class ActionResult:
    """Outcome of a controller action"""
    success: bool
    data: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None) -> "ActionResult":
        return cls(success=True, data=data)

    @classmethod
    def failed(cls, exc: BaseException) -> "ActionResult":
        message, error_type = describe_error(exc)
        return cls(success=False, error=message, error_type=error_type)

    @classmethod
    def busy(cls) -> "ActionResult":
        return cls(success=False, error="Still working on your last request.", error_type="busy")


def describe_error(exc: BaseException) -> Tuple[str, str]:
    """User-facing message and a short type tag for a caught exception"""
    if isinstance(exc, ServiceUnavailable):
        return OVERLOADED_MESSAGE, "overloaded"
    if isinstance(exc, MalformedResponse):
        return "The AI returned an unexpected response. Please try again.", "malformed"
    if isinstance(exc, GenerationError):
        return str(exc), "generation"
    if isinstance(exc, StorageQuotaExceeded):
        return "The syllabus could not be saved because browser storage is full. Delete an old syllabus and try again.", "storage"
    if isinstance(exc, InvalidRequest):
        return str(exc), "invalid"
    if isinstance(exc, SyllabusNotFound):
        return "That syllabus no longer exists.", "not_found"
    if isinstance(exc, NotSignedIn):
        return "Please sign in first.", "not_signed_in"
    if isinstance(exc, ProviderError):
        return f"AI provider is not configured: {str(exc)}", "provider"
    return "Something went wrong. Please try again.", "unexpected"


class _Controller:
    """
    Debounces duplicate submissions and converts failures to ActionResult.

    Pages pass request() as the submit widget's callback and run the action
    on the rerun the click triggers, while pending is set. The widget is
    drawn disabled during that run, so a second click cannot queue another
    submission. pending is cleared once the action finishes.
    """

    def __init__(self, generator: ContentGenerator):
        self.generator = generator
        self.busy = False
        self.pending = False
        self.error: Optional[str] = None

    def request(self):
        """Widget callback marking a submission for the next script run"""
        self.pending = True

    def cancel(self):
        self.pending = False

    def _run(self, action: str, func, *args, **kwargs) -> ActionResult:
        if self.busy:
            logger.info(f"Ignoring duplicate {action} request")
            return ActionResult.busy()
        self.busy = True
        try:
            result = ActionResult.ok(func(*args, **kwargs))
        except InvalidRequest as e:
            result = ActionResult.failed(e)
        except (GenerationError, StorageQuotaExceeded, SyllabusNotFound, NotSignedIn, ProviderError) as e:
            logger.error(f"{action} failed: {type(e).__name__}: {str(e)}")
            result = ActionResult.failed(e)
        except Exception as e:
            logger.exception(f"Unexpected error during {action}")
            result = ActionResult.failed(e)
        finally:
            self.busy = False
            self.pending = False
        self.error = result.error
        return result


class UploadController(_Controller):
    """Validate a file, deconstruct it and save the result as the active syllabus"""

    def submit(self, repository: SyllabusRepository, file_name: str, mime_type: str, data: bytes) -> ActionResult:
        return self._run("syllabus upload", self._submit, repository, file_name, mime_type, data)

    def _submit(self, repository: SyllabusRepository, file_name: str, mime_type: str, data: bytes) -> Syllabus:
        validate_upload(file_name, mime_type, len(data or b""))
        source_text = extract_source_text(data, mime_type)
        mind_map = self.generator.deconstruct(to_data_uri(data, mime_type), file_name=file_name)
        display_name = file_name.rsplit(".", 1)[0]
        return repository.create(mind_map, source_text or None, display_name)


class QuizController(_Controller):
    """
    Quiz flow: configuring -> taking -> results.
    reset() goes back to configuring from anywhere.
    """

    CONFIGURING = "configuring"
    TAKING = "taking"
    RESULTS = "results"

    def __init__(self, generator: ContentGenerator):
        super().__init__(generator)
        self.reset()

    def reset(self):
        self.state = self.CONFIGURING
        self.questions: List[QuizQuestion] = []
        self.answers: Dict[int, str] = {}
        self.current = 0

    @staticmethod
    def topic_choices(mind_map: Optional[MindMap]) -> List[str]:
        """The whole-syllabus option followed by every topic breadcrumb"""
        choices = [ENTIRE_SYLLABUS]
        if mind_map is not None:
            choices.extend(flatten_topic_paths(mind_map))
        return choices

    def generate(self, topic: str, difficulty: str, num_questions: int, source_text: Optional[str]) -> ActionResult:
        result = self._run("quiz generation", self._generate, topic, difficulty, num_questions, source_text)
        if result.success:
            self.questions = result.data
            self.answers = {}
            self.current = 0
            self.state = self.TAKING
        return result

    def _generate(self, topic, difficulty, num_questions, source_text) -> List[QuizQuestion]:
        if not source_text:
            raise InvalidRequest("The source text for this syllabus is missing. Upload it again to generate a quiz.")
        request = build_request(
            QuizRequest, topic=topic, difficulty=difficulty, num_questions=num_questions, source_text=source_text
        )
        return self.generator.generate_quiz(request)

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        if self.state != self.TAKING or not self.questions:
            return None
        return self.questions[self.current]

    def select_answer(self, option: str):
        """Record (or change) the answer to the current question"""
        question = self.current_question
        if question is None:
            return
        if option not in question.options:
            raise InvalidRequest(f"'{option}' is not one of the options.")
        self.answers[self.current] = option

    def next_question(self):
        """Advance; after the last question the quiz moves to results"""
        if self.state != self.TAKING:
            return
        if self.current + 1 < len(self.questions):
            self.current += 1
        else:
            self.state = self.RESULTS

    def is_correct(self, index: int) -> bool:
        return self.answers.get(index) == self.questions[index].correct_answer

    def score(self) -> Tuple[int, int]:
        """(correct answers, total questions)"""
        correct = sum(1 for index in range(len(self.questions)) if self.is_correct(index))
        return correct, len(self.questions)


class FlashcardController(_Controller):
    """A deck of cards, one shown at a time, front or back"""

    def __init__(self, generator: ContentGenerator):
        super().__init__(generator)
        self.cards: List[Flashcard] = []
        self.index = 0
        self.flipped = False

    def generate(self, topic: str, source_text: Optional[str]) -> ActionResult:
        result = self._run("flashcard generation", self._generate, topic, source_text)
        if result.success:
            self.cards = result.data
            self.index = 0
            self.flipped = False
        return result

    def _generate(self, topic, source_text) -> List[Flashcard]:
        if not source_text:
            raise InvalidRequest("The source text for this syllabus is missing. Upload it again to create flashcards.")
        request = build_request(FlashcardRequest, topic=topic, source_text=source_text)
        return self.generator.generate_flashcards(request)

    @property
    def current_card(self) -> Optional[Flashcard]:
        return self.cards[self.index] if self.cards else None

    def flip(self):
        if self.cards:
            self.flipped = not self.flipped

    def next_card(self):
        if self.index + 1 < len(self.cards):
            self.index += 1
            self.flipped = False

    def previous_card(self):
        if self.index > 0:
            self.index -= 1
            self.flipped = False


class StudyPlanController(_Controller):
    def __init__(self, generator: ContentGenerator):
        super().__init__(generator)
        self.plan: Optional[str] = None

    def generate(self, exam_date: date, daily_hours: float, style: str, intensity: str,
                 source_text: Optional[str]) -> ActionResult:
        result = self._run("study plan generation", self._generate, exam_date, daily_hours, style, intensity, source_text)
        if result.success:
            self.plan = result.data
        return result

    def _generate(self, exam_date, daily_hours, style, intensity, source_text) -> str:
        if not source_text:
            raise InvalidRequest("The source text for this syllabus is missing. Upload it again to build a plan.")
        request = build_request(
            StudyPlanRequest,
            exam_date=exam_date,
            daily_hours=daily_hours,
            style=style,
            intensity=intensity,
            source_text=source_text,
        )
        return self.generator.generate_plan(request)


class TutorController(_Controller):
    """Question-and-answer chat about the active syllabus"""

    def __init__(self, generator: ContentGenerator, repository: SyllabusRepository):
        super().__init__(generator)
        self.repository = repository

    def transcript(self) -> List[ChatTurn]:
        syllabus_id = self.repository.active_id
        if syllabus_id is None:
            return []
        return self.repository.chat_history.get(syllabus_id)

    def ask(self, question: str) -> ActionResult:
        return self._run("tutor answer", self._ask, question)

    def _ask(self, question: str) -> ChatTurn:
        syllabus = self.repository.get_active()
        if syllabus is None:
            raise InvalidRequest("Upload a syllabus before asking the tutor.")
        question = (question or "").strip()
        if not question:
            raise InvalidRequest("Please enter a question.")

        history = self.repository.chat_history
        prior_turns = history.get(syllabus.id)
        history.append(syllabus.id, ChatTurn(role="user", content=question))
        try:
            reply = self.generator.answer(
                question,
                source_text=syllabus.source_text,
                mind_map=syllabus.mind_map,
                prior_turns=prior_turns,
            )
        except Exception:
            history.save(syllabus.id, prior_turns)
            raise

        turn = ChatTurn(role="assistant", content=reply.answer, from_syllabus=reply.from_syllabus)
        history.append(syllabus.id, turn)
        return turn

    def clear(self):
        if self.repository.active_id is not None:
            self.repository.chat_history.clear(self.repository.active_id)

    @staticmethod
    def needs_disclaimer(turn: ChatTurn) -> bool:
        return turn.role == "assistant" and turn.from_syllabus is False


def dashboard_summary(mind_map: Optional[MindMap]) -> Dict[str, Any]:
    """Headline numbers and chart rows for the dashboard"""
    average = average_top_level_importance(mind_map)
    return {
        "total_topics": count_nodes(mind_map),
        "top_level_topics": len(mind_map) if mind_map is not None else 0,
        "average_importance": average,
        "average_importance_display": format_importance(average),
        "chart_rows": top_level_importances(mind_map),
    }
