"""Sentiment analysis through a Gemini ``generateContent`` endpoint.

The endpoint URL and key are stored as API keys (GEMINI_API_URL,
GEMINI_API_KEY). Text may be English, Hindi or Hinglish. The model is asked
for one word, which is mapped onto positive/negative/neutral.

Every failure (missing configuration, HTTP error, API error object,
unexpected payload, transport exception) yields ``unknown`` plus an error
string. Nothing is raised.

Usage:
    analyzer = GeminiSentimentAnalyzer(api_key="...", api_url="https://...")
    result = await analyzer.analyze("This launch went great")
    result.sentiment  # "positive"
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from sqlalchemy.orm import Session

from insight_core.config import Settings, get_settings
from insight_core.domain.flows.clients import get_api_key_service
from insight_core.domain.models import Sentiment
from insight_core.domain.services.api_keys import (
    GEMINI_API_KEY,
    GEMINI_API_URL,
    ApiKeyService,
)

logger = logging.getLogger(__name__)

PROMPT_TEMPLATE = (
    "Analyze the sentiment of the following text. The text may be in English, "
    "Hindi, or Hinglish (a mix of Hindi and English). Respond with only one word: "
    "'positive', 'negative', or 'neutral'. Text: \"{text}\""
)

GENERATION_CONFIG = {
    "temperature": 0.2,
    "topK": 1,
    "topP": 0.95,
    "maxOutputTokens": 10,
    "candidateCount": 1,
}

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]


@dataclass
class SentimentResult:
    sentiment: str
    error: Optional[str] = None


def map_model_output(raw: str) -> Optional[str]:
    """Map free-form model output onto a sentiment label, or None."""
    raw = raw.strip().lower()
    for label in (Sentiment.POSITIVE, Sentiment.NEGATIVE, Sentiment.NEUTRAL):
        if label in raw:
            return label
    return None


class GeminiSentimentAnalyzer:
    """Labels text using a Gemini-compatible generateContent endpoint."""

    def __init__(
        self,
        api_key: Optional[str],
        api_url: Optional[str],
        timeout: float = 15.0,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_url)

    @classmethod
    def from_api_keys(
        cls, api_keys: ApiKeyService, timeout: float = 15.0
    ) -> "GeminiSentimentAnalyzer":
        values = api_keys.get_key_values(GEMINI_API_KEY, GEMINI_API_URL)
        return cls(values[GEMINI_API_KEY], values[GEMINI_API_URL], timeout=timeout)

    def build_payload(self, text: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": PROMPT_TEMPLATE.format(text=text)}]}],
            "generationConfig": GENERATION_CONFIG,
            "safetySettings": SAFETY_SETTINGS,
        }

    async def analyze(self, text: str) -> SentimentResult:
        """Label one piece of text.

        Args:
            text: Text to analyze.

        Returns:
            SentimentResult; ``error`` is set whenever sentiment is unknown
            because of a failure.
        """
        if not text or not text.strip():
            return SentimentResult(Sentiment.UNKNOWN, "Invalid input: text must not be empty")
        if not self.api_key:
            return SentimentResult(
                Sentiment.UNKNOWN, f'API key "{GEMINI_API_KEY}" not configured.'
            )
        if not self.api_url:
            return SentimentResult(
                Sentiment.UNKNOWN, f'API URL "{GEMINI_API_URL}" not configured.'
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.api_url,
                    params={"key": self.api_key},
                    json=self.build_payload(text),
                    headers={"Content-Type": "application/json"},
                )
        except httpx.HTTPError as e:
            logger.error(f"Gemini request failed: {e}")
            return SentimentResult(Sentiment.UNKNOWN, f"Exception during API call: {e}")

        if response.status_code < 200 or response.status_code >= 300:
            logger.error(
                f"Gemini API error {response.status_code}: {response.text[:300]}"
            )
            return SentimentResult(
                Sentiment.UNKNOWN,
                f"Gemini API request failed with status {response.status_code}",
            )

        try:
            data = response.json()
        except ValueError as e:
            return SentimentResult(Sentiment.UNKNOWN, f"Invalid JSON from Gemini API: {e}")

        if not isinstance(data, dict):
            return SentimentResult(
                Sentiment.UNKNOWN, "No sentiment data found in API response."
            )

        if data.get("error"):
            error = data["error"]
            message = error.get("message", "unknown error") if isinstance(error, dict) else str(error)
            logger.error(f"Gemini API returned an error object: {message}")
            return SentimentResult(Sentiment.UNKNOWN, f"Gemini API Error: {message}")

        try:
            raw = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            logger.warning("Gemini response did not contain sentiment data")
            return SentimentResult(
                Sentiment.UNKNOWN, "No sentiment data found in API response."
            )

        label = map_model_output(str(raw))
        if label is None:
            logger.warning(f"Could not map Gemini output to a sentiment: {raw!r}")
            return SentimentResult(
                Sentiment.UNKNOWN, "Could not interpret sentiment from API response."
            )
        return SentimentResult(label)


async def analyze_sentiment(
    db: Session, text: str, settings: Optional[Settings] = None
) -> SentimentResult:
    """Analyze text with the Gemini configuration stored in the database.

    Stored values are decrypted with the configured encryption key.
    """
    settings = settings or get_settings()
    analyzer = GeminiSentimentAnalyzer.from_api_keys(
        get_api_key_service(db, settings), timeout=settings.http_timeout_seconds
    )
    return await analyzer.analyze(text)
