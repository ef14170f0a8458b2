# src/quadrant_tasks/llm/client.py

from __future__ import annotations

import logging
import time

import httpx
import openai
from openai import AsyncOpenAI

from ..errors import RemoteFailureError, TaskValidationError

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = (
    "You are a professional work-analysis assistant. You summarize work clearly "
    "and give concrete suggestions for improvement."
)


def _make_timeout_obj(total_s: float) -> httpx.Timeout:
    connect_s = min(5.0, total_s)
    return httpx.Timeout(total_s, connect=connect_s, pool=connect_s)


def _response_body(exc: openai.APIStatusError) -> str:
    try:
        return exc.response.text.strip()
    except Exception:
        return ""


class OpenAIReportClient:
    """
    Report generator over an OpenAI-compatible chat completion endpoint.

    IMPORTANT:
    - The API key is passed per call; nothing secret is needed at construction.
    - Automatic retries are disabled (max_retries=0): failures are reported, not retried.
    """

    def __init__(
        self,
        *,
        base_url: str = "https://api.openai.com/v1",
        default_model: str = "gpt-3.5-turbo",
        temperature: float = 0.7,
        timeout_seconds: float = 30.0,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url or not base_url.strip():
            raise TaskValidationError("LLM base URL is not set. Set QTASKS_OPENAI_BASE_URL in your .env.")
        self._base_url = base_url.strip()
        self._default_model = default_model
        self._temperature = float(temperature)
        self._timeout = _make_timeout_obj(float(timeout_seconds))
        self._system_prompt = system_prompt
        # Injected client (tests, shared pools) is owned by the caller and never closed here.
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings) -> OpenAIReportClient:
        return cls(
            base_url=settings.openai_base_url,
            default_model=settings.report_model,
            temperature=settings.report_temperature,
            timeout_seconds=settings.http_timeout_seconds,
        )

    def _make_client(self, api_key: str) -> AsyncOpenAI:
        return AsyncOpenAI(
            api_key=api_key,
            base_url=self._base_url,
            timeout=self._timeout,
            max_retries=0,
            http_client=self._http_client,
        )

    async def generate(self, api_key: str, model: str, prompt: str) -> str:
        if not api_key or not api_key.strip():
            raise TaskValidationError("API key must not be empty")
        if not prompt or not prompt.strip():
            raise TaskValidationError("report prompt must not be empty")

        model = (model or "").strip() or self._default_model
        client = self._make_client(api_key.strip())

        logger.info("LLM: requesting report model=%s prompt_chars=%d", model, len(prompt))
        t0 = time.monotonic()
        try:
            completion = await client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": self._system_prompt},
                    {"role": "user", "content": prompt},
                ],
                temperature=self._temperature,
            )
        except openai.APIStatusError as e:
            body = _response_body(e)
            logger.warning("LLM: report request failed model=%s status=%s", model, e.status_code)
            raise RemoteFailureError(
                f"Report API call failed (HTTP {e.status_code})",
                status_code=e.status_code,
                body=body,
            ) from e
        except openai.APIConnectionError as e:
            logger.warning("LLM: network/timeout error model=%s (%s)", model, e.__class__.__name__)
            raise RemoteFailureError(f"Report API is unreachable: {e}") from e
        finally:
            if self._http_client is None:
                await client.close()

        if not completion.choices:
            raise RemoteFailureError("Report API returned no choices")

        content = completion.choices[0].message.content
        if not content:
            raise RemoteFailureError("Report API returned an empty report")

        logger.info("LLM: report ready model=%s (%.2fs)", model, time.monotonic() - t0)
        return content
