"""To-do suggestions extracted from free-form notes by Gemini."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from core.sync import SyncEngine

logger = logging.getLogger(__name__)

GEMINI_API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"

PROMPT_TEMPLATE = (
    "Analyze the following unstructured notes and extract a list of actionable "
    "short to-do items. Return ONLY a valid JSON array of strings "
    '(e.g. ["Buy milk", "Study math"]). Notes: "{notes}"'
)

EMPTY_NOTES_MESSAGE = "Please write something in the Brain Dump first!"
FAILURE_MESSAGE = "AI Analysis failed. Check your GEMINI_API_KEY."


class SuggestionError(Exception):
    """Raised when the suggestion service fails or answers with junk."""


def parse_suggestions(data: dict[str, Any]) -> list[str]:
    """Pull the JSON array of strings out of a generateContent response."""
    try:
        text = data["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as e:
        raise SuggestionError("response has no candidate text") from e
    if not text:
        raise SuggestionError("response candidate text is empty")
    try:
        items = json.loads(text)
    except json.JSONDecodeError as e:
        raise SuggestionError(f"candidate text is not JSON: {e}") from e
    if not isinstance(items, list) or not all(isinstance(i, str) for i in items):
        raise SuggestionError("candidate JSON is not an array of strings")
    return items


class SuggestionClient:
    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.transport = transport

    def suggest(self, notes: str) -> list[str]:
        if not self.api_key:
            raise SuggestionError("GEMINI_API_KEY is not set in the environment.")

        payload = {
            "contents": [{"parts": [{"text": PROMPT_TEMPLATE.format(notes=notes)}]}],
            "generationConfig": {"responseMimeType": "application/json"},
        }
        url = f"{GEMINI_API_BASE}/{self.model}:generateContent"

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.post(url, params={"key": self.api_key}, json=payload)
        except httpx.HTTPError as e:
            raise SuggestionError(f"request failed: {e}") from e

        if resp.status_code != 200:
            raise SuggestionError(
                f"Gemini error: status={resp.status_code}, body={resp.text[:500]}"
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise SuggestionError(f"response is not JSON: {e}") from e
        return parse_suggestions(data)


class NotesAnalyzer:
    """Suggestion state shown next to the notes.

    ``analyze`` replaces the suggestion list; on any failure it stays empty
    and ``message`` carries the text to show the user.
    """

    def __init__(self, client: SuggestionClient, engine: SyncEngine) -> None:
        self.client = client
        self.engine = engine
        self.suggestions: list[str] = []
        self.analyzing = False
        self.message: str | None = None

    def analyze(self, notes: str) -> list[str]:
        self.message = None
        if not notes.strip():
            self.message = EMPTY_NOTES_MESSAGE
            return []

        self.analyzing = True
        self.suggestions = []
        try:
            self.suggestions = self.client.suggest(notes)
        except SuggestionError as e:
            logger.warning("AI Error: %s", e)
            self.message = FAILURE_MESSAGE
        finally:
            self.analyzing = False
        return self.suggestions

    def accept(self, text: str) -> None:
        """Turn a suggestion into a todo on the current plan."""
        self.engine.add_todo(text)
        self.dismiss(text)

    def dismiss(self, text: str) -> None:
        self.suggestions = [s for s in self.suggestions if s != text]
