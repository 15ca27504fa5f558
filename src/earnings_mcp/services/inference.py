"""InferenceClient — one-shot text completions via LiteLLM.

The AI tools only ever need "system prompt + user prompt -> one string", so
this wraps :func:`litellm.acompletion` behind that narrow interface and
bounds every call with the configured timeout.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import litellm

from earnings_mcp.config import InferenceConfig
from earnings_mcp.errors import InferenceError, InferenceNotConfiguredError, InferenceTimeoutError
from earnings_mcp.utils.telemetry import ATTR_MODEL, ATTR_PROVIDER, get_tracer

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class InferenceClient:
    """Async client for the configured completion model.

    Usage::

        client = InferenceClient(config.ai)
        if client.is_configured:
            text = await client.complete("Analyze this portfolio: ...")
    """

    def __init__(self, config: InferenceConfig) -> None:
        self.config = config

    @property
    def is_configured(self) -> bool:
        return self.config.is_configured

    async def complete(self, prompt: str, system_prompt: str | None = None) -> str:
        """Send a system+user message pair and return the reply text.

        Raises:
            InferenceNotConfiguredError: No credentials are configured.
            InferenceTimeoutError: The call exceeded ``config.timeout``.
            InferenceError: The provider failed or returned no text.
        """
        if not self.is_configured:
            raise InferenceNotConfiguredError()

        with _tracer.start_as_current_span("inference.complete") as span:
            span.set_attribute(ATTR_MODEL, self.config.model)
            span.set_attribute(ATTR_PROVIDER, self.config.provider)

            call_kwargs: dict[str, Any] = {
                "model": self.config.model,
                "messages": [
                    {"role": "system", "content": system_prompt or self.config.system_prompt},
                    {"role": "user", "content": prompt},
                ],
                "api_key": self.config.api_key,
            }
            api_base = self.config.resolved_api_base
            if api_base:
                call_kwargs["api_base"] = api_base

            try:
                response = await asyncio.wait_for(
                    litellm.acompletion(**call_kwargs),  # pyright: ignore[reportUnknownMemberType]
                    timeout=self.config.timeout,
                )
            except asyncio.TimeoutError as exc:
                logger.warning("Inference with %s timed out after %ss", self.config.model, self.config.timeout)
                raise InferenceTimeoutError(self.config.timeout) from exc
            except Exception as exc:
                logger.warning("Inference with %s failed: %s", self.config.model, exc)
                raise InferenceError(str(exc)) from exc

            return _extract_text(response)


def _extract_text(response: Any) -> str:
    """Pull the assistant text out of an OpenAI-style completion response."""
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError) as exc:
        raise InferenceError("provider returned an unexpected response shape") from exc
    if not content or not str(content).strip():
        raise InferenceError("provider returned an empty response")
    return str(content).strip()
