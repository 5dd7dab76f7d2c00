"""
Text-to-task extraction.

``TaskExtractor`` is the port the task service depends on; ``OpenAITaskExtractor``
implements it with OpenAI chat completions in JSON mode. Extractors only turn
text into candidates. Filtering and validation happen in ``TaskService``.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime

from openai import (
    APIConnectionError,
    APIError,
    APITimeoutError,
    AsyncOpenAI,
    AuthenticationError,
    RateLimitError,
)
from pydantic import BaseModel, ValidationError, field_validator

logger = logging.getLogger(__name__)


class GeneratedTask(BaseModel):
    """A task suggestion produced from free text. Never persisted as-is."""

    title: str = ""
    description: str = ""
    due_date: datetime | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def null_as_empty(cls, v: object) -> object:
        return "" if v is None else v


class TaskExtractionError(Exception):
    """The extractor could not produce candidates (network, quota, bad output)."""


class TaskExtractor(ABC):
    """Port for turning free text into task candidates."""

    @abstractmethod
    async def extract_tasks(self, text: str, reference_time: datetime) -> list[GeneratedTask]:
        """
        Extract task candidates from ``text``.

        Args:
            text: Free text such as meeting notes.
            reference_time: "Now", used to resolve relative dates like "tomorrow".

        Raises:
            TaskExtractionError: On any provider or parsing failure.
        """


SYSTEM_PROMPT = """You are a task extraction assistant. Extract concrete, actionable tasks from the user's text.

Return a JSON object of the form:
{"tasks": [{"title": "short task title", "description": "details of the task", "due_date": "ISO 8601 datetime such as 2025-10-28T23:59:59Z, or null when no deadline is stated"}]}

Rules:
- Return {"tasks": []} when the text contains no tasks.
- Convert relative deadlines ("tomorrow", "next week") into concrete datetimes using the current time given below.
- due_date must be an ISO 8601 string or null.
- Return only JSON, no explanations and no markdown."""


class OpenAITaskExtractor(TaskExtractor):
    """OpenAI implementation of TaskExtractor using the async SDK in JSON mode."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        timeout: float = 30.0,
        temperature: float = 0.3,
    ) -> None:
        if not api_key:
            raise ValueError("OpenAI API key not provided. Set OPENAI_API_KEY.")
        self.client = AsyncOpenAI(api_key=api_key, timeout=timeout)
        self.model = model
        self.temperature = temperature

    async def extract_tasks(self, text: str, reference_time: datetime) -> list[GeneratedTask]:
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": f"Current time: {reference_time.isoformat()}\n\nText:\n{text}",
            },
        ]

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                response_format={"type": "json_object"},
                temperature=self.temperature,
            )
        except APITimeoutError as e:
            raise TaskExtractionError(f"OpenAI API timeout: {e}") from e
        except RateLimitError as e:
            raise TaskExtractionError(f"OpenAI rate limit exceeded: {e}") from e
        except AuthenticationError as e:
            raise TaskExtractionError(f"OpenAI authentication failed: {e}") from e
        except (APIConnectionError, APIError) as e:
            raise TaskExtractionError(f"OpenAI service error: {e}") from e

        if not response.choices:
            raise TaskExtractionError("No response from OpenAI")

        return parse_generated_tasks(response.choices[0].message.content or "")


def parse_generated_tasks(raw_output: str) -> list[GeneratedTask]:
    """
    Parse model output into candidates.

    Accepts either ``{"tasks": [...]}`` or a bare JSON array.
    """
    try:
        payload = json.loads(raw_output)
    except json.JSONDecodeError as e:
        raise TaskExtractionError(f"Failed to parse AI response: {e}") from e

    if isinstance(payload, dict):
        payload = payload.get("tasks", [])
    if not isinstance(payload, list):
        raise TaskExtractionError("AI response is not a list of tasks")

    try:
        return [GeneratedTask.model_validate(item) for item in payload]
    except ValidationError as e:
        logger.warning("AI response contained malformed tasks: %s", e)
        raise TaskExtractionError(f"AI response contained malformed tasks: {e}") from e
