"""Content generation service backed by Google Gemini."""
import asyncio
import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

import google.generativeai as genai

from mnemodrill.config import settings
from mnemodrill.models.models import MnemonicStory, MnemonicSystem
from mnemodrill.monitoring import content_fallbacks, content_request_duration, content_requests

logger = logging.getLogger(__name__)

STORY_FIELDS = ("breakdown", "word", "story")


class ContentServiceError(Exception):
    """The content service could not produce a usable answer."""


class ContentServiceUnavailable(ContentServiceError):
    """The content service is not configured."""


class MalformedResponseError(ContentServiceError):
    """The content service answered with something that cannot be parsed."""


class ContentService(ABC):
    """Contract the practice engine expects from a content provider."""

    @abstractmethod
    async def get_hint(self, system: MnemonicSystem, number: str) -> str:
        """Return a mnemonic hint for a number."""

    @abstractmethod
    async def validate_answer(self, system: MnemonicSystem, number: str, answer: str) -> bool:
        """Return whether an answer is a valid mnemonic for a number."""

    @abstractmethod
    async def generate_story(self, system: MnemonicSystem, number: str, exaggerated: bool = False) -> MnemonicStory:
        """Return a breakdown, keyword and story for a number."""


def get_system_prompt(system: MnemonicSystem, number: str) -> str:
    """Describe how the given system encodes a number."""
    if system == MnemonicSystem.MAJOR:
        return (
            f"Generate a single, common, and memorable English word for the number {number} "
            "using the Major System rules (0=s/z, 1=t/d, 2=n, 3=m, 4=r, 5=l, 6=j/sh/ch, 7=k/g, "
            "8=f/v, 9=p/b). Vowels are free."
        )
    if system == MnemonicSystem.DOMINIC:
        return (
            f"Generate a famous person and a simple action for the number {number} using the "
            "Dominic System (1=A, 2=B, 3=C, 4=D, 5=E, 6=S, 7=G, 8=H, 9=N, 0=O). For example, 15 "
            "could be AE -> Albert Einstein. Give me a person and an action."
        )
    if system == MnemonicSystem.NUMBER_RHYME:
        return (
            f"Generate a simple, memorable rhyming phrase for the number {number}. "
            "For example, for '1', you could suggest 'a bun'."
        )
    if system == MnemonicSystem.NUMBER_SHAPE:
        return (
            f"Describe a simple, memorable image based on the shapes of the digits in the number "
            f"{number}. For example, for '2', you could suggest 'a swan'."
        )
    return f"Give me a creative way to remember the number {number}."


def get_validation_prompt(system: MnemonicSystem, number: str, answer: str) -> str:
    """Ask for a strict yes/no verdict on a user's mnemonic."""
    return (
        f"A student is practicing the {system.value} with the number {number}. "
        f'Their mnemonic is: "{answer}". '
        "Is this a valid mnemonic for that number under the rules of this system? "
        "Reply with only YES or NO."
    )


def get_story_prompt(system: MnemonicSystem, number: str, exaggerated: bool) -> str:
    """Ask for a structured mnemonic story as JSON."""
    tone = (
        "Make the story wildly exaggerated, absurd and vivid so it is impossible to forget."
        if exaggerated
        else "Keep the story short, concrete and easy to picture."
    )
    return (
        f"Help me memorize the number {number} using the {system.value}. "
        "Break the number into chunks and encode each chunk under the rules of the system. "
        f"{tone} "
        'Respond with a JSON object with the string keys "breakdown" (how the digits map to '
        'sounds, letters or images), "word" (the resulting keyword or phrase) and "story" '
        "(a short story or image linking the pieces)."
    )


def parse_validation(text: str) -> bool:
    """Interpret a YES/NO verdict."""
    verdict = text.strip().upper()
    if verdict.startswith("YES"):
        return True
    if verdict.startswith("NO"):
        return False
    raise MalformedResponseError(f"Expected YES or NO, got: {text[:50]!r}")


def parse_story(text: str) -> MnemonicStory:
    """Parse the JSON story payload."""
    # Models sometimes wrap JSON in a markdown fence
    cleaned = re.sub(r"^```(?:json)?\s*|\s*```$", "", text.strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Story response is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise MalformedResponseError("Story response is not a JSON object")

    missing = [key for key in STORY_FIELDS if not isinstance(data.get(key), str) or not data[key].strip()]
    if missing:
        raise MalformedResponseError(f"Story response is missing fields: {', '.join(missing)}")
    return MnemonicStory(
        breakdown=data["breakdown"].strip(),
        word=data["word"].strip(),
        story=data["story"].strip(),
    )


class GeminiContentService(ContentService):
    """Content service calling the Gemini API, with offline fallbacks when no key is set."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = settings.gemini.api_key if api_key is None else api_key
        self.model_name = model_name or settings.gemini.model
        self.timeout = timeout or settings.gemini.timeout
        self._model = None
        if not self.api_key:
            logger.warning("GEMINI_API_KEY is not set, content service will use local fallbacks")

    @property
    def is_configured(self) -> bool:
        """Whether an API key is available."""
        return bool(self.api_key)

    def _get_model(self):
        if self._model is None:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(model_name=self.model_name)
            logger.info(f"Gemini model '{self.model_name}' initialized")
        return self._model

    async def _generate(self, operation: str, prompt: str, temperature: float, json_output: bool = False) -> str:
        """Send a prompt and return the trimmed response text."""
        if not self.is_configured:
            raise ContentServiceUnavailable("GEMINI_API_KEY is not set")

        generation_config = genai.GenerationConfig(
            temperature=temperature,
            response_mime_type="application/json" if json_output else "text/plain",
        )
        content_requests.labels(operation=operation).inc()
        with content_request_duration.labels(operation=operation).time():
            try:
                response = await asyncio.wait_for(
                    self._get_model().generate_content_async(prompt, generation_config=generation_config),
                    timeout=self.timeout,
                )
                text = response.text
            except asyncio.TimeoutError as e:
                raise ContentServiceError(f"{operation} timed out after {self.timeout}s") from e
            except Exception as e:
                raise ContentServiceError(f"{operation} failed: {e}") from e

        if not text or not text.strip():
            raise ContentServiceError("No text returned from Gemini API.")
        return text.strip()

    async def get_hint(self, system: MnemonicSystem, number: str) -> str:
        """Generate a hint, or a canned one when the service is not configured."""
        if not self.is_configured:
            content_fallbacks.labels(operation="hint").inc()
            return f"A clever hint for {number}."
        hint = await self._generate("hint", get_system_prompt(system, number), settings.gemini.hint_temperature)
        logger.info(f"Hint generated for {number} ({system.value})")
        return hint

    async def validate_answer(self, system: MnemonicSystem, number: str, answer: str) -> bool:
        """Ask the model whether an answer is valid; without a key, any non-empty answer passes."""
        if not self.is_configured:
            content_fallbacks.labels(operation="validate").inc()
            return bool(answer.strip())
        text = await self._generate("validate", get_validation_prompt(system, number, answer), temperature=0.0)
        return parse_validation(text)

    async def generate_story(self, system: MnemonicSystem, number: str, exaggerated: bool = False) -> MnemonicStory:
        """Generate a structured story; raises MalformedResponseError on unusable output."""
        text = await self._generate(
            "story",
            get_story_prompt(system, number, exaggerated),
            settings.gemini.story_temperature,
            json_output=True,
        )
        story = parse_story(text)
        logger.info(f"Story generated for {number} ({system.value}, exaggerated={exaggerated})")
        return story
