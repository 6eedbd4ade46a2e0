"""
Text-generation backends.

Each backend is a strategy object wrapping one provider SDK behind the common
generate() capability. Instances are built once at process start and handed
to the GenerationRouter; nothing here is a module-level client.

Failures are loud: provider errors propagate unchanged so the router can
fall back to the next backend.
"""

from abc import ABC, abstractmethod
from typing import Optional

import anthropic
import google.generativeai as genai
from openai import OpenAI

DEFAULT_OPENAI_MODEL = "gpt-4o-mini"
DEFAULT_CLAUDE_MODEL = "claude-3-5-sonnet-20241022"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"


class GenerationBackend(ABC):
    """Common capability implemented by every backend."""

    name: str = ""

    @abstractmethod
    def generate(
        self,
        system_instruction: str,
        user_instruction: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        """Return generated text or raise."""


def _require(value: Optional[str], label: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"{label} is required and cannot be empty")
    return value


class OpenAIBackend(GenerationBackend):
    """OpenAI chat completions backend."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_OPENAI_MODEL,
        timeout: Optional[float] = None,
    ):
        """Initialize OpenAI backend.

        Args:
            api_key: OpenAI API key (required)
            model: Chat model name
            timeout: Per-request timeout in seconds passed to the SDK

        Raises:
            ValueError: If api_key or model is missing/empty
        """
        self.model = _require(model, "model")
        self.client = OpenAI(api_key=_require(api_key, "api_key"), timeout=timeout)

    def generate(self, system_instruction, user_instruction, temperature, max_tokens):
        completion = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_instruction},
                {"role": "user", "content": user_instruction},
            ],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return completion.choices[0].message.content or ""


class AnthropicBackend(GenerationBackend):
    """Anthropic messages API backend."""

    name = "claude"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_CLAUDE_MODEL,
        timeout: Optional[float] = None,
    ):
        self.model = _require(model, "model")
        self.client = anthropic.Anthropic(api_key=_require(api_key, "api_key"), timeout=timeout)

    def generate(self, system_instruction, user_instruction, temperature, max_tokens):
        message = self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_instruction,
            messages=[{"role": "user", "content": user_instruction}],
        )
        block = message.content[0]
        if block.type != "text":
            raise ValueError(f"Unexpected Claude response block type: {block.type}")
        return block.text


class GeminiBackend(GenerationBackend):
    """Google Generative AI (Gemini) backend."""

    name = "gemini"

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_GEMINI_MODEL,
        timeout: Optional[float] = None,
    ):
        self.model = _require(model, "model")
        self.api_key = _require(api_key, "api_key")
        self.timeout = timeout

    def generate(self, system_instruction, user_instruction, temperature, max_tokens):
        genai.configure(api_key=self.api_key)
        model = genai.GenerativeModel(
            self.model,
            system_instruction=system_instruction,
            generation_config=genai.GenerationConfig(
                temperature=temperature,
                max_output_tokens=max_tokens,
            ),
        )
        request_options = {"timeout": self.timeout} if self.timeout else None
        response = model.generate_content(user_instruction, request_options=request_options)
        if not response or not response.text:
            raise ValueError("Empty response from Gemini")
        return response.text
