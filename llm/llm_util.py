"""
Generative completion client used by the summarization and analysis engines.

Engines receive a client at construction and check ``available()`` before
calling it. ``complete`` never raises: every failure comes back as a
``CompletionUnavailable`` so callers can branch to their rule-based path.
"""

import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol, Union

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_core.prompts import PromptTemplate
from langchain_google_genai import ChatGoogleGenerativeAI

from util.logging_util import setup_logger, log_llm_interaction

logger = setup_logger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT_SECONDS = 30


@dataclass(frozen=True)
class CompletionOk:
    text: str


@dataclass(frozen=True)
class CompletionUnavailable:
    reason: str


Completion = Union[CompletionOk, CompletionUnavailable]


class CompletionClient(Protocol):
    def available(self) -> bool:
        ...

    def complete(self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float) -> Completion:
        ...


def render_prompt(template_path: Path, params: dict) -> str:
    """Render a Jinja2 prompt template file with the given parameters."""
    with open(template_path, "r") as f:
        template_content = f.read()

    prompt = PromptTemplate.from_template(template_content, template_format="jinja2")
    return prompt.format(**params)


def get_api_key() -> Optional[str]:
    return os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")


def _response_text(response_content) -> str:
    # Gemini returns content as a list of parts, extract the text
    if isinstance(response_content, list):
        text_parts = [part.get('text', '') for part in response_content if isinstance(part, dict) and 'text' in part]
        return ''.join(text_parts)
    return response_content or ""


class NullClient:
    """A completion client that is never available."""

    def available(self) -> bool:
        return False

    def complete(self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float) -> Completion:
        return CompletionUnavailable("no completion client configured")


class GeminiClient:
    """Completion client backed by Gemini through LangChain."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key or get_api_key()
        self.model_name = model_name or os.environ.get("CURATION_MODEL", DEFAULT_MODEL)
        self.timeout = timeout
        # Feature-detected once; a missing key keeps every call on the fallback path
        self._available = bool(self.api_key)
        if not self._available:
            logger.warning("No Gemini API key configured. AI features are disabled, using rule-based fallbacks.")

    def available(self) -> bool:
        return self._available

    def complete(self, system_prompt: str, user_prompt: str, max_tokens: int, temperature: float) -> Completion:
        """Single best-effort completion; no retries."""
        if not self._available:
            return CompletionUnavailable("AI completion is not configured")

        start_time = time.time()
        try:
            llm = ChatGoogleGenerativeAI(
                model=self.model_name,
                google_api_key=self.api_key,
                temperature=temperature,
                max_output_tokens=max_tokens,
                timeout=self.timeout,
                max_retries=0,
            )
            response = llm.invoke([
                SystemMessage(content=system_prompt),
                HumanMessage(content=user_prompt),
            ])
        except Exception as e:
            logger.error(f"LLM completion failed: {e}")
            return CompletionUnavailable(str(e))

        text = _response_text(response.content).strip()
        duration_ms = (time.time() - start_time) * 1000
        log_llm_interaction(logger, system_prompt, user_prompt, text, self.model_name, duration_ms)

        if not text:
            return CompletionUnavailable("empty completion")
        return CompletionOk(text)
