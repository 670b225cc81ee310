"""
Reading Content Agent

DESIGN DECISION: Study material is produced by a language model, but
the rest of the application only ever sees a validated `ReadingContent`.
The agent:
1. Builds the prompt from the formatted reading reference
2. Asks for JSON output
3. Validates the JSON against the pydantic model
4. Retries (tenacity) when the response is malformed

CRITICAL BOUNDARIES:
- The agent NEVER touches storage. Caching and archiving belong to the
  reading flow.
- A partial or malformed response is an error, never a half-filled page.
- The context image is optional decoration. Failing to produce one is
  reported as None, not raised.
"""

import base64
import json
from abc import ABC, abstractmethod
from typing import Any, Optional

import google.generativeai as genai
import structlog
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from devotional.config import GeminiSettings, get_settings
from devotional.models.plan import DailyReading, Locale
from devotional.models.reading import ReadingContent
from devotional.plan.scheduler import format_reference


logger = structlog.get_logger(__name__)


class ContentGenerationError(Exception):
    """The generator could not produce content."""
    pass


class ContentValidationError(ContentGenerationError):
    """The generator answered, but not with valid reading content."""
    pass


_READING_PROMPTS = {
    Locale.KO: """성경 {reference}의 포괄적인 묵상 자료를 생성해 주세요. 다음 필드를 가진 JSON 객체 하나로만 응답하세요.

1. passage: {reference}의 전체 본문 (현대 한국어 번역, 각 절 번호 포함, 절마다 줄바꿈)
2. preReadingQuestions: 본문을 읽기 전에 말씀의 핵심 의도를 붙잡도록 돕는 5가지 질문의 배열. 각 질문 뒤 괄호 안에 답이 될 핵심 키워드 1~2개 (예: 이방인을 향한 하나님의 계획은 무엇인가요? (구원, 하나됨))
3. meditationGuide: 묵상 가이드. '**'로 제목을 구분하고 항목은 줄바꿈으로 구분 (핵심 메시지, 나를 위한 질문, 오늘의 적용, 마치는 기도)
4. context: 역사적, 문화적 배경 (약 100 단어)
5. intention: 본문이 기록된 핵심 의도 (3-4 문단)
6. imagePrompt: 주제를 상징하는 안전한 이미지 프롬프트. 사람과 종교적 인물 없이 사물, 자연, 빛만 사용한 사실적인 유화
7. summary: 본문 요약 2-3문장""",
    Locale.EN: """Generate comprehensive meditation material for {reference} in English. Respond with a single JSON object with these fields:

1. passage: the full text of {reference} in a modern translation, verse numbers included, one verse per line
2. preReadingQuestions: an array of 5 questions to ask before reading, each followed by 1-2 answer keywords in parentheses
3. meditationGuide: a meditation guide with '**' headings separated by line breaks (Key Message, Questions for Me, Today's Application, Closing Prayer)
4. context: historical and cultural background (about 100 words)
5. intention: the author's purpose and message (3-4 paragraphs)
6. imagePrompt: a safe, symbolic image prompt using only objects, nature and light, no people, as a realistic oil painting
7. summary: a 2-3 sentence summary of the passage""",
}

_IMAGE_PREFIX = {
    Locale.KO: "상징적인 유화 스타일: ",
    Locale.EN: "A realistic symbolic oil painting of: ",
}

_IMAGE_FALLBACK = {
    Locale.KO: "고대 중동의 평화로운 풍경. 올리브 나무와 돌길이 있는 언덕의 사실적인 유화.",
    Locale.EN: "A peaceful biblical landscape. Realistic oil painting.",
}


def parse_reading_content(text: str) -> ReadingContent:
    """
    Parse a model response into reading content.

    Tolerates prose or code fences around the JSON object.

    Raises:
        ContentValidationError: If no valid content object is found
    """
    if not text:
        raise ContentValidationError("Empty response from content model")

    start = text.find("{")
    end = text.rfind("}") + 1
    if start < 0 or end <= start:
        raise ContentValidationError("No JSON object in content model response")

    try:
        data = json.loads(text[start:end])
    except json.JSONDecodeError as e:
        raise ContentValidationError(f"Malformed JSON from content model: {e}") from e

    try:
        return ReadingContent.model_validate(data)
    except ValidationError as e:
        raise ContentValidationError(
            f"Content model response is missing or has invalid fields ({e.error_count()} errors)"
        ) from e


class ReadingContentGenerator(ABC):
    """Anything that can write study material for a reading."""

    @abstractmethod
    async def generate_reading_content(
        self,
        reading: DailyReading,
        locale: Locale,
    ) -> ReadingContent:
        """
        Generate study material for a reading.

        Raises:
            ContentGenerationError: If no valid content could be produced
        """
        pass

    @abstractmethod
    async def generate_context_image(
        self,
        prompt: str,
        fallback_context: str,
        locale: Locale,
    ) -> Optional[str]:
        """
        Generate a symbolic image for a reading.

        Returns:
            A data URL, or None if no image could be produced. Never raises.
        """
        pass


class GeminiReadingAgent(ReadingContentGenerator):
    """
    Gemini-backed content generator.

    The models can be injected, which keeps the agent usable without
    network access.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        max_attempts: Optional[int] = None,
        content_model: Any = None,
        image_model: Any = None,
        retry_wait: Any = None,
    ):
        self._settings = settings or get_settings().gemini
        self._max_attempts = max_attempts or get_settings().app.max_generation_attempts
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=2, max=10)
        self._content_model = content_model
        self._image_model = image_model

        if self._content_model is None or self._image_model is None:
            self._configure_genai()

    def _configure_genai(self):
        """Configure Google Generative AI."""
        genai.configure(api_key=self._settings.api_key)

        if self._content_model is None:
            self._content_model = genai.GenerativeModel(
                model_name=self._settings.content_model_name,
                generation_config={
                    "temperature": self._settings.temperature,
                    "max_output_tokens": self._settings.max_tokens,
                    "response_mime_type": "application/json",
                },
            )

        if self._image_model is None:
            self._image_model = genai.GenerativeModel(
                model_name=self._settings.image_model_name,
            )

    def build_prompt(self, reading: DailyReading, locale: Locale) -> str:
        locale = Locale(locale)
        reference = format_reference(reading, locale)
        return _READING_PROMPTS[locale].format(reference=reference)

    async def _generate_once(self, prompt: str) -> ReadingContent:
        try:
            response = await self._content_model.generate_content_async(prompt)
            text = response.text
        except Exception as e:
            # SDK errors are not retried here; they are not a malformed answer.
            raise ContentGenerationError(f"Content model request failed: {e}") from e

        return parse_reading_content(text)

    async def generate_reading_content(
        self,
        reading: DailyReading,
        locale: Locale,
    ) -> ReadingContent:
        prompt = self.build_prompt(reading, locale)
        reference = format_reference(reading, locale)

        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self._max_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception_type(ContentValidationError),
            reraise=True,
        ):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    logger.warning(
                        "content_generation_retry",
                        reference=reference,
                        attempt=attempt.retry_state.attempt_number,
                    )
                content = await self._generate_once(prompt)

        logger.info("content_generated", reference=reference)
        return content

    async def _image_from_prompt(self, prompt: str) -> Optional[str]:
        response = await self._image_model.generate_content_async(prompt)

        for candidate in response.candidates or []:
            for part in candidate.content.parts:
                inline = getattr(part, "inline_data", None)
                if inline is not None and inline.data:
                    data = inline.data
                    if isinstance(data, str):
                        encoded = data
                    else:
                        encoded = base64.b64encode(data).decode("ascii")
                    mime_type = getattr(inline, "mime_type", None) or "image/png"
                    return f"data:{mime_type};base64,{encoded}"

        return None

    async def generate_context_image(
        self,
        prompt: str,
        fallback_context: str,
        locale: Locale,
    ) -> Optional[str]:
        locale = Locale(locale)
        subject = prompt.strip() or fallback_context.strip()
        attempts = []
        if subject:
            attempts.append(_IMAGE_PREFIX[locale] + subject)
        attempts.append(_IMAGE_FALLBACK[locale])

        for image_prompt in attempts:
            try:
                image = await self._image_from_prompt(image_prompt)
            except Exception as e:
                logger.warning("context_image_failed", error=str(e))
                continue
            if image:
                return image

        return None
