"""Text-completion oracle interface and the Gemini implementation."""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Protocol

from ..errors import InvalidRequestError
from .models import OracleConfig, resolve_oracle_config

logger = logging.getLogger(__name__)


class Oracle(Protocol):
    """Opaque text-completion service used for verdicts, fixes and tests."""

    async def generate(
        self,
        prompt: str,
        *,
        max_output_tokens: int = 4000,
        temperature: float = 0.1,
    ) -> str:
        """Return the completion text for ``prompt``."""
        ...


def resolve_api_key(api_key: str | None = None) -> str:
    """Return the explicit key or the one from the environment."""
    key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
    if not key:
        raise InvalidRequestError("Missing GEMINI_API_KEY (or GOOGLE_API_KEY).")
    return key


class GeminiOracle:
    """Oracle backed by the google-genai async client."""

    def __init__(self, api_key: str | None = None, *, cfg: OracleConfig | None = None) -> None:
        key = resolve_api_key(api_key)
        try:
            from google import genai
        except ImportError as e:  # pragma: no cover
            raise RuntimeError(
                "google-genai is required for analysis. Install with: pip install '.[ai]'"
            ) from e

        self.cfg = resolve_oracle_config(cfg)
        self._client = genai.Client(api_key=key)

    async def generate(
        self,
        prompt: str,
        *,
        max_output_tokens: int = 4000,
        temperature: float = 0.1,
    ) -> str:
        """Call Gemini with bounded retries and exponential backoff."""
        last_err: Exception | None = None
        for attempt in range(1, self.cfg.max_retries + 1):
            try:
                resp = await self._client.aio.models.generate_content(
                    model=self.cfg.model,
                    contents=prompt,
                    config={
                        "max_output_tokens": max_output_tokens,
                        "temperature": temperature,
                    },
                )
                return resp.text or ""
            except Exception as e:
                last_err = e
                if attempt >= self.cfg.max_retries:
                    break
                sleep_s = min(8, 2 ** (attempt - 1))
                logger.warning(
                    "Gemini call failed (attempt %s/%s): %s", attempt, self.cfg.max_retries, e
                )
                await asyncio.sleep(sleep_s)

        raise RuntimeError(
            f"Gemini call failed after {self.cfg.max_retries} attempts: {last_err}"
        ) from last_err
