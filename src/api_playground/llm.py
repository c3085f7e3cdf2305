"""LLM client wrapper around litellm.

Provides a unified interface for calling any LLM model supported by litellm.
"""

import json
import logging
import re

from litellm import completion

from api_playground.config import get_settings
from api_playground.errors import AiResponseError

logger = logging.getLogger(__name__)


class LlmClient:
    """Wrapper for LLM API calls via litellm."""

    def __init__(self, model: str | None = None):
        self.model = model or get_settings().llm_model

    def call(self, system: str, user: str) -> str:
        """Send a system+user message to the LLM and return the response text."""
        response = completion(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        )
        return response.choices[0].message.content

    def call_json(self, system: str, user: str) -> dict:
        """Call the LLM and decode a JSON object from its reply."""
        text = self.call(system=system, user=user) or ""
        try:
            data = json.loads(_extract_json(text))
        except ValueError as e:
            logger.warning("LLM reply was not valid JSON (%d chars)", len(text))
            raise AiResponseError(f"AI response was not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise AiResponseError("AI response was not a JSON object")
        return data


def _extract_json(text: str) -> str:
    """Extract JSON from a response that might contain Markdown code blocks."""
    match = re.search(r"```(?:json)?\s*\n(.*?)```", text, re.DOTALL)
    if match:
        return match.group(1).strip()
    return text.strip()
