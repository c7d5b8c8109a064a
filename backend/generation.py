"""
Content generation for StudyMap
Turns syllabi into mind maps, quizzes, flashcards, tutor answers and study
plans through an OpenAI-compatible chat API.
"""

import json
import time
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

import openai
from langchain_openai import ChatOpenAI
from openai import OpenAI
from pydantic import BaseModel, ValidationError

from backend.errors import GenerationError, InvalidRequest, MalformedResponse, ServiceUnavailable
from backend.mindmap import mind_map_outline, normalize_mind_map, strip_json_fences
from backend.models import ChatTurn, MindMap
from backend.prompts import (
    DECONSTRUCT_PROMPT, QUIZ_PROMPT, FLASHCARD_PROMPT, TUTOR_SYSTEM_PROMPT, STUDY_PLAN_PROMPT
)
from backend.schemas import (
    AnswerRequest, FlashcardRequest, FlashcardResponse, Flashcard, QuizRequest, QuizResponse,
    QuizQuestion, StudyPlanRequest, StudyPlanResponse, TutorAnswer, build_request
)
from backend.uploads import parse_data_uri
from utils.config import (
    ENTIRE_SYLLABUS, REQUEST_TIMEOUT, get_current_provider, get_importance_range,
    get_provider_config, load_api_key
)
from utils.providers import ProviderError, create_client, get_api_call_params, get_model_for_task

logger = logging.getLogger(__name__)

ResponseT = TypeVar("ResponseT", bound=BaseModel)

# Constants for retry logic
MAX_RETRIES = 3
RETRY_DELAY = 2  # seconds

# Rate limits, dropped connections, timeouts and 5xx/overloaded responses
TRANSIENT_ERRORS = (openai.RateLimitError, openai.APIConnectionError, openai.InternalServerError)


def get_token_count(response) -> str:
    """Extract token count from API response, handling both object and dict formats"""
    usage_info = getattr(response, 'usage', None)
    if usage_info:
        if hasattr(usage_info, 'total_tokens'):
            return str(usage_info.total_tokens)
        elif isinstance(usage_info, dict):
            return str(usage_info.get('total_tokens', 'n/a'))
    return 'n/a'


def retry_api_call(func, *args, max_retries=MAX_RETRIES, **kwargs):
    """
    Retry API calls with exponential backoff.

    Only transient provider errors are retried; once the retries are used up
    ServiceUnavailable is raised. Anything else propagates immediately.
    """
    last_error = None
    for attempt in range(max_retries):
        try:
            return func(*args, **kwargs)
        except TRANSIENT_ERRORS as e:
            last_error = e
            if attempt < max_retries - 1:
                wait_time = RETRY_DELAY * (2 ** attempt)
                logger.warning(f"{type(e).__name__} from provider, retrying in {wait_time} seconds...")
                time.sleep(wait_time)
    logger.error(f"Failed after {max_retries} attempts. Last error: {str(last_error)}")
    raise ServiceUnavailable(
        f"The AI service is unavailable after {max_retries} attempts: {str(last_error)}"
    ) from last_error


def _get_tutor_llm(provider: Optional[str] = None) -> ChatOpenAI:
    """Create the tutor chat model for the current provider"""
    provider = provider or get_current_provider()
    api_key = load_api_key(provider)

    if not api_key:
        raise ProviderError(f"No API key configured for provider: {provider}")

    config = get_provider_config(provider)

    llm_kwargs = {
        "model_name": get_model_for_task("chat", provider),
        "temperature": 0.3,
        "openai_api_key": api_key,
        "timeout": REQUEST_TIMEOUT,
        "max_retries": 0,  # retry_api_call handles retries
    }
    if config.get("base_url"):
        llm_kwargs["base_url"] = config["base_url"]

    return ChatOpenAI(**llm_kwargs)


def parse_json_reply(text: Optional[str], reason: str) -> Dict[str, Any]:
    """Parse a model reply that should be a single JSON object"""
    if not text or not text.strip():
        raise MalformedResponse(f"{reason}: the AI returned an empty reply")
    try:
        data = json.loads(strip_json_fences(text))
    except json.JSONDecodeError as e:
        raise MalformedResponse(f"{reason}: the AI returned invalid JSON ({e})")
    if not isinstance(data, dict):
        raise MalformedResponse(f"{reason}: expected a JSON object, got {type(data).__name__}")
    return data


def validate_reply(model: Type[ResponseT], data: Dict[str, Any], reason: str) -> ResponseT:
    """Check a parsed reply against its response model"""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"{reason}: reply failed validation: {e}")
        raise MalformedResponse(f"{reason}: the AI returned an unexpected format")


def _message_content(response) -> Optional[str]:
    choices = getattr(response, 'choices', None)
    if not choices:
        raise MalformedResponse("Invalid response structure: no choices returned")
    message = getattr(choices[0], 'message', None)
    return getattr(message, 'content', None)


class ContentGenerator:
    """
    One-shot generation calls. Each method validates its request, calls the
    provider and validates the reply; failures raise GenerationError
    subclasses (or InvalidRequest for bad input).
    """

    def __init__(self, client: Optional[OpenAI] = None, provider: Optional[str] = None,
                 tutor_llm: Optional[ChatOpenAI] = None):
        self._client = client
        self.provider = provider
        self._tutor_llm = tutor_llm

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = create_client(self.provider)
        return self._client

    @property
    def tutor_llm(self) -> ChatOpenAI:
        if self._tutor_llm is None:
            self._tutor_llm = _get_tutor_llm(self.provider)
        return self._tutor_llm

    def _guarded(self, reason: str, call):
        """Run an API call with retries, mapping provider errors to GenerationError"""
        try:
            return retry_api_call(call)
        except openai.AuthenticationError:
            logger.error(f"{reason}: authentication failed")
            raise GenerationError("Invalid API key. Please check your API key in Settings.")
        except openai.PermissionDeniedError:
            logger.error(f"{reason}: permission denied")
            raise GenerationError("API key doesn't have access to the required model.")
        except openai.APIStatusError as e:
            logger.error(f"{reason}: API error {e.status_code}: {e.message}")
            raise GenerationError(f"{reason} failed: {e.message}")
        except ProviderError as e:
            logger.error(f"{reason}: provider error: {str(e)}")
            raise GenerationError(f"Provider configuration error: {str(e)}")

    def _complete_json(self, reason: str, messages: List[Dict[str, Any]], task: str = "chat",
                       temperature: float = 0.7) -> Dict[str, Any]:
        try:
            model = get_model_for_task(task, self.provider)
            client = self.client
        except ProviderError as e:
            raise GenerationError(f"Provider configuration error: {str(e)}")

        def make_call():
            params = get_api_call_params(
                model=model,
                messages=messages,
                temperature=temperature,
                response_format={"type": "json_object"},
            )
            logger.info(f"[API CALL] Reason: {reason} | Model: {model}")
            return client.chat.completions.create(**params)

        response = self._guarded(reason, make_call)
        logger.info(f"[API RETURN] {reason} complete | Model: {model} | Tokens: {get_token_count(response)}")
        return parse_json_reply(_message_content(response), reason)

    # Operations

    def deconstruct(self, data_uri: str, file_name: str = "syllabus") -> MindMap:
        """Build a mind map from an uploaded syllabus given as a data URI"""
        mime_type, data = parse_data_uri(data_uri)
        low, high = get_importance_range()
        system_prompt = DECONSTRUCT_PROMPT.format(IMPORTANCE_MIN=low, IMPORTANCE_MAX=high)

        if mime_type == "application/pdf":
            task = "document"
            user_content: Any = [
                {"type": "text", "text": "Deconstruct this syllabus into a mind map."},
                {"type": "file", "file": {"filename": file_name, "file_data": data_uri}},
            ]
        elif mime_type == "text/plain":
            task = "chat"
            user_content = f"Syllabus content:\n\n{data.decode('utf-8', errors='replace')}"
        else:
            raise InvalidRequest("Only .pdf and .txt files are accepted.")

        reply = self._complete_json(
            "Syllabus deconstruction",
            [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
            task=task,
            temperature=0.2,
        )
        mind_map = normalize_mind_map(reply)
        if not mind_map.topics:
            raise MalformedResponse("Syllabus deconstruction: the AI found no topics in this document")
        return mind_map

    def generate_quiz(self, request: QuizRequest) -> List[QuizQuestion]:
        prompt = QUIZ_PROMPT.format(
            TOPIC=request.topic,
            DIFFICULTY=request.difficulty,
            NUM_QUESTIONS=request.num_questions,
            ENTIRE_SYLLABUS=ENTIRE_SYLLABUS,
            SOURCE_TEXT=request.source_text,
        )
        reply = self._complete_json(
            "Quiz generation",
            [
                {"role": "system", "content": "You are a quiz generator. Return only valid JSON."},
                {"role": "user", "content": prompt},
            ],
        )
        quiz = validate_reply(QuizResponse, reply, "Quiz generation").quiz
        if len(quiz) != request.num_questions:
            logger.warning(f"Asked for {request.num_questions} questions, got {len(quiz)}")
        return quiz

    def generate_flashcards(self, request: FlashcardRequest) -> List[Flashcard]:
        prompt = FLASHCARD_PROMPT.format(TOPIC=request.topic, SOURCE_TEXT=request.source_text)
        reply = self._complete_json(
            "Flashcard generation",
            [
                {"role": "system", "content": "You are a flashcard generator. Return only valid JSON."},
                {"role": "user", "content": prompt},
            ],
        )
        return validate_reply(FlashcardResponse, reply, "Flashcard generation").flashcards

    def answer(self, question: str, source_text: Optional[str] = None, mind_map: Optional[MindMap] = None,
               prior_turns: Optional[Sequence[ChatTurn]] = None) -> TutorAnswer:
        """
        Answer a tutor question from the source text, or from the mind map
        when no text is available. prior_turns is the conversation so far.
        """
        request = build_request(
            AnswerRequest,
            question=question,
            source_text=source_text,
            mind_map_outline=mind_map_outline(mind_map) if mind_map is not None and not source_text else None,
            prior_turns=[{"role": turn.role, "content": turn.content} for turn in prior_turns or []],
        )

        messages = [{"role": "system", "content": TUTOR_SYSTEM_PROMPT.format(MATERIAL=request.material)}]
        messages += [turn.model_dump() for turn in request.prior_turns]
        messages.append({"role": "user", "content": request.question})

        try:
            llm = self.tutor_llm
        except ProviderError as e:
            raise GenerationError(f"Provider configuration error: {str(e)}")

        def make_call():
            logger.info(f"[API CALL] Reason: Tutor answer | Turns: {len(messages) - 1}")
            return llm.invoke(messages, response_format={"type": "json_object"})

        reply = self._guarded("Tutor answer", make_call)
        content = reply.content if isinstance(reply.content, str) else json.dumps(reply.content)
        answer = validate_reply(TutorAnswer, parse_json_reply(content, "Tutor answer"), "Tutor answer")
        logger.info(f"[API RETURN] Tutor answer complete | fromSyllabus={answer.from_syllabus}")
        return answer

    def generate_plan(self, request: StudyPlanRequest) -> str:
        prompt = STUDY_PLAN_PROMPT.format(
            TODAY=date.today().isoformat(),
            EXAM_DATE=request.exam_date.isoformat(),
            DAILY_HOURS=f"{request.daily_hours:g}",
            STYLE=request.style,
            INTENSITY=request.intensity,
            SOURCE_TEXT=request.source_text,
        )
        reply = self._complete_json(
            "Study plan generation",
            [
                {"role": "system", "content": "You are a study planner. Return only valid JSON."},
                {"role": "user", "content": prompt},
            ],
        )
        return validate_reply(StudyPlanResponse, reply, "Study plan generation").study_schedule
