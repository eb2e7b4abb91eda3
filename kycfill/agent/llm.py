"""Shared language-model service used by every AI-assisted decision.

One :class:`ClassificationService` handles field classification, dropdown
intent, next-action choice and phone country code correction. Its network
access and credentials come from an explicit :class:`LLMContext`. Service
failures never propagate; they collapse to an empty result so callers fall back
to their heuristics.
"""
from __future__ import annotations

import asyncio
import inspect
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from ..config import Settings, get_settings
from ..profile import SLOT_KEYS

logger = logging.getLogger(__name__)

JSON_ONLY_SUFFIX = "\n\nOutput only a JSON object with no markdown formatting or additional text."
NONE_SENTINEL = "none"


@dataclass(frozen=True, slots=True)
class LLMContext:
    """Execution context for model calls: credentials, endpoint and limits."""

    api_key: Optional[str]
    model: str = "gpt-4o"
    base_url: Optional[str] = None
    timeout: float = 30.0
    temperature: float = 0.0

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "LLMContext":
        settings = settings or get_settings()
        return cls(
            api_key=settings.openai_api_key,
            model=settings.llm_model,
            base_url=settings.openai_base_url,
            timeout=settings.llm_timeout_seconds,
            temperature=settings.llm_temperature,
        )

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


@dataclass(frozen=True, slots=True)
class DropdownIntent:
    is_dropdown: bool
    target_value: str


def unwrap_json_text(text: str) -> str:
    """Strip markdown code fences and keep the outermost ``{...}`` if present."""

    cleaned = (text or "").strip()
    if cleaned.startswith("```"):
        cleaned = cleaned.strip("`").strip()
        if cleaned.lower().startswith("json"):
            cleaned = cleaned[4:].lstrip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start != -1 and end > start:
        cleaned = cleaned[start : end + 1]
    return cleaned.strip()


def parse_model_output(text: str) -> Any:
    """Return the parsed JSON value, or the unwrapped raw text if it is not JSON."""

    cleaned = unwrap_json_text(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        logger.warning("Model output was not valid JSON, returning raw text", extra={"raw_response": cleaned[:200]})
        return cleaned


def build_classification_prompt(fields: Sequence[Mapping[str, Any]], slots: Sequence[str] = SLOT_KEYS) -> str:
    count = len(fields)
    return (
        "I have the following form fields captured from a webpage:\n"
        + json.dumps(list(fields), indent=2, ensure_ascii=False)
        + f"\n\nThere are {count} fields in total. "
        + f"Please return a JSON object that has an entry for every field index (from 0 to {count - 1}). "
        + "The value associated with each field index should be one of the following keys: "
        + ", ".join(slots)
        + ". If a field does not clearly correspond to one of these keys, please set its value to null. "
        + "Output only a pure JSON object with no markdown formatting or additional text."
    )


def build_dropdown_prompt(button_text: str, parent_markup: str, sibling_markup: str, target_value: str) -> str:
    return (
        "Analyze this button's context to determine if it triggers a dropdown:\n"
        f'Button Text: "{button_text}"\n'
        f"Parent Container: {parent_markup}\n"
        f"Nearby Elements: {sibling_markup or 'none'}\n\n"
        f'Should this button open a dropdown to select "{target_value}" instead of performing an action? '
        "Consider that valid dropdown options are typically nouns (countries, states), "
        "while action buttons use verbs (back, submit). "
        f'Respond with JSON: {{"isDropdown": boolean, "targetValue": "{target_value}"}}'
    )


def build_next_action_prompt(button_texts: Sequence[str]) -> str:
    return (
        "You are given a list of candidate button texts that appear on a web page:\n"
        + "\n".join(button_texts)
        + '\n\nFrom this list, choose the button text that is most likely to represent the "next" action '
        '(e.g., "continue", "next", etc.). '
        'Respond with JSON: {"buttonText": "<exact text from the list>"}. '
        f'If none seem appropriate, use "{NONE_SENTINEL}" as the button text. '
        "Do not include any extra explanation."
    )


def build_phone_code_prompt(country: str, phone_country_code: str) -> str:
    return (
        "You are an expert on international telephone dialing codes.\n"
        "Given:\n"
        f"Country: {country}\n"
        f"Provided Phone Country Code: {phone_country_code}\n"
        "Verify if the provided phone country code is correct for the specified country.\n"
        "If it is correct, return the same code.\n"
        "If it is not correct, return the correct phone country code.\n"
        'Output your answer as a JSON object in the format {"phoneCountryCode": "<correct code>"} '
        "with no additional text."
    )


class ClassificationService:
    """Async wrapper around the OpenAI Chat Completions API."""

    def __init__(self, context: LLMContext, *, client: Any | None = None) -> None:
        if client is None and context.enabled:
            client = AsyncOpenAI(api_key=context.api_key, base_url=context.base_url, timeout=context.timeout)
        self._client = client
        self._context = context

    @property
    def available(self) -> bool:
        return self._client is not None

    async def complete(self, prompt: str) -> Any:
        """Send ``prompt`` and return the parsed answer.

        Returns ``{}`` when no client is configured or the call fails.
        """

        if self._client is None:
            logger.debug("No language model configured, skipping request")
            return {}
        try:
            text = await self._invoke_chat_api(prompt + JSON_ONLY_SUFFIX)
        except (OpenAIError, RuntimeError, asyncio.TimeoutError) as exc:
            logger.warning("Language model request failed", exc_info=exc, extra={"model": self._context.model})
            return {}
        logger.debug("Language model response received", extra={"length": len(text)})
        return parse_model_output(text)

    async def _invoke_chat_api(self, prompt: str) -> str:
        request = {
            "model": self._context.model,
            "temperature": self._context.temperature,
            "messages": [{"role": "user", "content": prompt}],
        }

        create = self._client.chat.completions.create
        result = create(**request)
        response = await result if inspect.iscoroutine(result) else result

        choices = getattr(response, "choices", None)
        if not choices:
            raise RuntimeError("Chat response did not include any choices")
        content = getattr(choices[0].message, "content", None)
        if content is None:
            raise RuntimeError("Chat response did not include content")
        return content

    async def classify_fields(self, fields: Sequence[Mapping[str, Any]], slots: Sequence[str] = SLOT_KEYS) -> Any:
        """Ask for an index-to-slot mapping; returns the parsed object or raw text."""

        if not fields:
            return {}
        return await self.complete(build_classification_prompt(fields, slots))

    async def detect_dropdown(
        self,
        button_text: str,
        parent_markup: str,
        sibling_markup: str,
        target_value: str,
    ) -> DropdownIntent:
        result = await self.complete(build_dropdown_prompt(button_text, parent_markup, sibling_markup, target_value))
        if not isinstance(result, dict):
            return DropdownIntent(is_dropdown=False, target_value=target_value)
        suggested = result.get("targetValue")
        return DropdownIntent(
            is_dropdown=result.get("isDropdown") is True,
            target_value=suggested.strip() if isinstance(suggested, str) and suggested.strip() else target_value,
        )

    async def choose_next_action(self, button_texts: Sequence[str]) -> Optional[str]:
        """Return the chosen button text, or ``None`` for no usable answer."""

        if not button_texts:
            return None
        result = await self.complete(build_next_action_prompt(button_texts))
        selected = ""
        if isinstance(result, dict):
            if isinstance(result.get("buttonText"), str):
                selected = result["buttonText"]
            elif isinstance(result.get("index"), int) and 0 <= result["index"] < len(button_texts):
                selected = button_texts[result["index"]]
        elif isinstance(result, str):
            selected = result
        selected = selected.strip()
        if not selected or selected.lower() == NONE_SENTINEL:
            return None
        return selected

    async def correct_phone_country_code(self, country: str, phone_country_code: str) -> str:
        """Return the model's corrected dialing code, or the provided one."""

        result = await self.complete(build_phone_code_prompt(country, phone_country_code))
        if isinstance(result, dict):
            corrected = result.get("phoneCountryCode")
            if not isinstance(corrected, bool) and isinstance(corrected, (str, int)) and str(corrected).strip():
                return str(corrected).strip()
        logger.warning("Phone country code response unusable, keeping stored code")
        return phone_country_code


__all__ = [
    "ClassificationService",
    "DropdownIntent",
    "JSON_ONLY_SUFFIX",
    "LLMContext",
    "NONE_SENTINEL",
    "build_classification_prompt",
    "build_dropdown_prompt",
    "build_next_action_prompt",
    "build_phone_code_prompt",
    "parse_model_output",
    "unwrap_json_text",
]
