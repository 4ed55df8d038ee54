# stance_analyzer/infrastructure/clients/gemini_client.py
"""
Gemini Stance Classifier Client
Asks a hosted LLM whether comments agree, disagree or are neutral toward a video.

Features:
- Per-comment prompts with plain-text label answers
- Batched prompts with a numbered JSON mapping answer
- Rate-limit responses reported as retryable, everything else as non-retryable
- No internal retries: retry policy belongs to the batch scheduler
"""

import json
import logging
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence

import httpx

from stance_analyzer.app.config import ClassifierSettings, get_config
from stance_analyzer.domain.models import Sentiment
from stance_analyzer.services.exceptions import (
    ClassifierNonRetryableError,
    ClassifierRetryableError,
    MalformedResponseError,
)

logger = logging.getLogger(__name__)

LABELS = ("AGREE", "DISAGREE", "NEUTRAL")

_CODE_FENCE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")

SINGLE_PROMPT = """Analyze the following YouTube comment and categorize it as AGREE, DISAGREE, or NEUTRAL based on whether it agrees, disagrees, or is neutral with respect to the video content.
Consider:
- Comments that express support, agreement, or positive feedback should be marked as AGREE
- Comments that criticize, object, reject, hate, disrespect, objectify, discriminate, or express negative opinions should be marked as DISAGREE
- Comments that are neutral, factual, or unrelated should be marked as NEUTRAL

Comment: "{text}"

Respond with exactly one word: AGREE, DISAGREE, or NEUTRAL."""

BATCH_PROMPT = """Analyze the following YouTube comments and categorize each one as AGREE, DISAGREE, or NEUTRAL based on whether they agree, disagree, or are neutral with respect to the video content.
Consider:
- Comments that express support, agreement, or positive feedback should be marked as AGREE
- Comments that criticize, object, reject, hate, disrespect, objectify, discriminate, or express negative opinions should be marked as DISAGREE
- Comments that are neutral, factual, or unrelated should be marked as NEUTRAL

Comments:
{comments}

Respond with a JSON object where the key is the comment number (1, 2, 3, etc.) and the value is the sentiment (AGREE, DISAGREE, or NEUTRAL).
Example:
{{
  "1": "AGREE",
  "2": "DISAGREE",
  "3": "NEUTRAL"
}}"""


# ============================================================================
# Prompt Building / Response Parsing
# ============================================================================


def build_single_prompt(text: str) -> str:
    return SINGLE_PROMPT.format(text=text)


def build_batch_prompt(texts: Iterable[str]) -> str:
    """Embed comments with 1-based indices"""
    numbered = "\n".join(f'{i}. "{text}"' for i, text in enumerate(texts, start=1))
    return BATCH_PROMPT.format(comments=numbered)


def parse_single_label(answer: str) -> Sentiment:
    """
    Find a label in a free-text answer.

    Matching is case-insensitive substring search in the order AGREE,
    DISAGREE, NEUTRAL. Because "DISAGREE" contains "AGREE", an answer that
    mentions disagree resolves to AGREE. This ordering is kept as-is.

    Raises:
        MalformedResponseError: no label in the answer
    """
    upper = answer.upper()
    for label in LABELS:
        if label in upper:
            return Sentiment(label.lower())
    raise MalformedResponseError(f"No stance label in response: {answer[:100]!r}")


def parse_batch_labels(answer: str, expected: int) -> List[Sentiment]:
    """
    Parse a `{"1": "AGREE", ...}` answer into labels in index order.

    Any defect (bad JSON, missing index, unknown label) fails the whole batch.

    Raises:
        MalformedResponseError: answer cannot be mapped onto every index
    """
    cleaned = _CODE_FENCE.sub("", answer.strip())
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedResponseError(f"Batch response is not valid JSON: {e}")

    if not isinstance(payload, dict):
        raise MalformedResponseError("Batch response is not a JSON object")

    sentiments: List[Sentiment] = []
    for index in range(1, expected + 1):
        value = payload.get(str(index))
        if not isinstance(value, str) or value.strip().upper() not in LABELS:
            raise MalformedResponseError(
                f"Missing or invalid label for comment {index}: {value!r}"
            )
        sentiments.append(Sentiment(value.strip().lower()))

    return sentiments


# ============================================================================
# Main API Client
# ============================================================================


class GeminiClassifierClient:
    """
    Remote stance classifier backed by the Generative Language API

    One instance is created at startup and shared by every analysis run.
    """

    def __init__(
        self,
        settings: Optional[ClassifierSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize classifier client

        Args:
            settings: Classifier settings (global config if not provided)
            transport: Optional httpx transport (tests inject a MockTransport)
        """
        self.settings = settings or get_config().classifier
        self.retryable_status_codes = frozenset(self.settings.retryable_status_codes)

        self.client = httpx.AsyncClient(
            base_url=self.settings.base_url,
            timeout=self.settings.request_timeout,
            transport=transport,
        )

        logger.info(f"✅ Gemini classifier initialized: model={self.settings.model}")

    async def classify_one(self, text: str) -> Sentiment:
        """Classify a single comment"""
        answer = await self._generate(build_single_prompt(text))
        return parse_single_label(answer)

    async def classify_batch(self, texts: Sequence[str]) -> List[Sentiment]:
        """Classify several comments with one prompt"""
        if not texts:
            return []
        answer = await self._generate(build_batch_prompt(texts), json_output=True)
        return parse_batch_labels(answer, len(texts))

    async def _generate(self, prompt: str, json_output: bool = False) -> str:
        """
        Send a prompt and return the model's text answer

        Raises:
            ClassifierRetryableError: rate limited
            ClassifierNonRetryableError: any other HTTP or network failure
            MalformedResponseError: response has no text candidate
        """
        generation_config: Dict[str, Any] = {"temperature": 0}
        if json_output:
            generation_config["responseMimeType"] = "application/json"

        body = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": generation_config,
        }

        try:
            response = await self.client.post(
                f"/models/{self.settings.model}:generateContent",
                params={"key": self.settings.api_key},
                json=body,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in self.retryable_status_codes:
                logger.warning(f"⚠️ Classifier rate limited (HTTP {status})")
                raise ClassifierRetryableError(
                    f"Rate limited by classifier (HTTP {status})", status_code=status
                )
            logger.error(f"❌ Classifier error {status}: {e.response.text[:200]}")
            raise ClassifierNonRetryableError(
                f"Classifier returned HTTP {status}", status_code=status
            )
        except httpx.RequestError as e:
            logger.error(f"❌ Classifier unreachable: {e}")
            raise ClassifierNonRetryableError(f"Classifier request failed: {e}")

        return self._extract_text(response)

    @staticmethod
    def _extract_text(response: httpx.Response) -> str:
        try:
            data = response.json()
            parts = data["candidates"][0]["content"]["parts"]
            return "".join(part.get("text", "") for part in parts).strip()
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            raise MalformedResponseError(f"Unexpected classifier response shape: {e}")

    async def close(self) -> None:
        """Close HTTP client connection pool"""
        await self.client.aclose()
        logger.info("🔌 Gemini classifier client closed")


def create_classifier_client(
    settings: Optional[ClassifierSettings] = None,
) -> GeminiClassifierClient:
    """Factory function to create the remote classifier client"""
    return GeminiClassifierClient(settings=settings)
