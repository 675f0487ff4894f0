"""AI inference client for an OpenAI-compatible endpoint (LiteLLM proxy).

The proxy handles provider selection, fallbacks and budget tracking; this
client sends one chat completion per call and maps failures onto the
tooling's exception hierarchy.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from openai import APIConnectionError, APIStatusError, APITimeoutError, OpenAI

from interview_admin.ai.task_router import get_model_for_task
from interview_admin.exceptions import (
    AIProviderError,
    NoAgentsAvailableError,
    QuotaExhaustedError,
    TransientError,
)
from interview_admin.settings import AISettings

logger = logging.getLogger(__name__)

# LiteLLM proxy defaults (overridable via env or settings)
_DEFAULT_BASE_URL = "http://litellm:4000"
_DEFAULT_TIMEOUT = 120


@dataclass
class CompletionResult:
    """Result from an inference call."""

    text: str
    model: str


class InferenceClient:
    """Thin wrapper around the OpenAI SDK pointed at the LiteLLM proxy.

        result = client.execute(task_type="assessment", prompt="...")
        result.text  # response content
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[int] = None,
    ):
        """
        Args:
            base_url: LiteLLM proxy origin (default: LITELLM_BASE_URL or http://litellm:4000)
            api_key: LiteLLM master key (default: LITELLM_MASTER_KEY)
            timeout: Request timeout in seconds (default: 120)
        """
        self._base_url = base_url or os.getenv("LITELLM_BASE_URL", _DEFAULT_BASE_URL)
        self._api_key = api_key or os.getenv("LITELLM_MASTER_KEY", "")
        self._timeout = timeout or int(os.getenv("LITELLM_TIMEOUT", str(_DEFAULT_TIMEOUT)))

        self._client = OpenAI(
            base_url=f"{self._base_url.rstrip('/')}/v1",
            api_key=self._api_key,
            timeout=self._timeout,
        )

    @classmethod
    def from_settings(cls, settings: AISettings) -> "InferenceClient":
        return cls(base_url=settings.base_url, api_key=settings.api_key, timeout=settings.timeout)

    def execute(
        self,
        task_type: str,
        prompt: str,
        model_override: Optional[str] = None,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> CompletionResult:
        """Send a prompt and return the completion text.

        Args:
            task_type: Task type ("assessment", "report")
            prompt: The prompt to send
            model_override: Override the task router's model selection
            max_tokens: Maximum tokens in response
            temperature: Sampling temperature

        Returns:
            CompletionResult with response text and the model that served it

        Raises:
            NoAgentsAvailableError: proxy returned 502/503 (all providers down)
            QuotaExhaustedError: proxy returned 429 (rate/budget limit)
            TransientError: Timeout or temporary connection failure
            AIProviderError: Other API errors or an empty completion
        """
        model = model_override or get_model_for_task(task_type)

        try:
            response = self._client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except APITimeoutError as e:
            raise TransientError(
                f"LiteLLM request timed out after {self._timeout}s",
                provider="litellm",
            ) from e
        except APIConnectionError as e:
            raise TransientError(
                f"Could not connect to LiteLLM proxy at {self._base_url}: {e}",
                provider="litellm",
            ) from e
        except APIStatusError as e:
            status = e.status_code
            body = str(e.body) if e.body else str(e)

            if status == 429:
                raise QuotaExhaustedError(
                    f"LiteLLM rate/budget limit: {body}",
                    provider="litellm",
                    reset_info="check LiteLLM budget settings",
                ) from e

            if status in (502, 503):
                raise NoAgentsAvailableError(
                    f"All LiteLLM providers unavailable for model {model}: {body}",
                    task_type=task_type,
                    tried_agents=[model],
                ) from e

            raise AIProviderError(f"LiteLLM API error (HTTP {status}): {body}") from e

        if not response.choices:
            raise AIProviderError(f"LiteLLM returned no choices for model {model}")

        text = response.choices[0].message.content or ""
        if not text.strip():
            raise AIProviderError(f"LiteLLM returned an empty completion for model {model}")

        actual_model = response.model or model
        logger.info(
            "LiteLLM call succeeded: task=%s model=%s tokens=%s",
            task_type,
            actual_model,
            getattr(response.usage, "total_tokens", "?"),
        )
        return CompletionResult(text=text, model=actual_model)
