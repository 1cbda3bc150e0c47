"""
Bridge to an external text-generation service.

The service only ever sees ``build_log_summary`` output, never the stored
document, and what comes back is plain text for display. Any failure turns
into a friendly message; nothing here can touch the journal.
"""

from __future__ import annotations

import logging
import os

import requests

from .analytics import filter_logs
from .schema import AppState

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_MODEL = "openai/gpt-oss-20b:free"
DEFAULT_TIMEOUT = 30.0

RETRY_MESSAGE = "Oops! I couldn't reach the virtual coach right now. Please try again later."
NOT_CONFIGURED_MESSAGE = "The virtual coach is not configured (set MENODIARY_AI_KEY)."
NO_LOGS_MESSAGE = "No records yet. Do your first check-in!"
EMPTY_REPLY_MESSAGE = "Couldn't generate an insight right now."

SYSTEM_PROMPT = (
    "Act as a women's health coach specialised in the menopause transition. "
    "Never diagnose and never suggest starting, stopping or changing any medication."
)

PROMPT_TEMPLATE = (
    "Analyse these journal entries from the last days:\n"
    "{summary}\n\n"
    "Write one short, warm and encouraging paragraph (max 60 words). "
    "Point out one pattern if there is one (for example worse sleep or better mood) "
    "and give one gentle, practical tip."
)


class InsightError(RuntimeError):
    pass


def build_log_summary(state: AppState, days: int = 7) -> str:
    lines = []
    for log in filter_logs(state)[-days:]:
        lines.append(f"Date: {log.date}, Mood: {log.mood}, Symptoms: {', '.join(log.symptoms)}")
    return "\n".join(lines)


class InsightClient:
    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        url: str = DEFAULT_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.api_key = api_key
        self.model = model
        self.url = url
        self.timeout = timeout

    @classmethod
    def from_env(cls) -> "InsightClient | None":
        key = os.getenv("MENODIARY_AI_KEY", "").strip()
        if not key:
            return None
        try:
            timeout = float(os.getenv("MENODIARY_AI_TIMEOUT", str(DEFAULT_TIMEOUT)))
        except ValueError:
            timeout = DEFAULT_TIMEOUT
        return cls(
            api_key=key,
            model=os.getenv("MENODIARY_AI_MODEL", DEFAULT_MODEL),
            url=os.getenv("MENODIARY_AI_URL", DEFAULT_URL),
            timeout=timeout,
        )

    def generate(self, summary: str) -> str:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        data = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": PROMPT_TEMPLATE.format(summary=summary)},
            ],
        }

        response = requests.post(self.url, headers=headers, json=data, timeout=self.timeout)
        if response.status_code != 200:
            raise InsightError(f"text service error: {response.status_code} - {response.text[:200]}")

        try:
            body = response.json()
            return str(body["choices"][0]["message"]["content"] or "").strip()
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise InsightError(f"unexpected text service payload: {e}") from e


def request_insight(state: AppState, client: InsightClient | None) -> str:
    summary = build_log_summary(state)
    if not summary:
        return NO_LOGS_MESSAGE
    if client is None:
        return NOT_CONFIGURED_MESSAGE

    try:
        text = client.generate(summary)
    except (requests.RequestException, InsightError) as e:
        logger.warning("Insight request failed: %s", e)
        return RETRY_MESSAGE
    return text or EMPTY_REPLY_MESSAGE
