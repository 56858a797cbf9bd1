from __future__ import annotations

import base64
import os
import time
from typing import Union

import httpx
import openai

from ..core.errors import ProviderError
from ..core.utils import extract_text
from .base import VisionResponse


def _get_openai_client(api_key: str, max_attempts: int) -> openai.AsyncOpenAI:
    proxy = os.environ.get("HTTPS_PROXY") or os.environ.get("HTTP_PROXY")
    http_client = httpx.AsyncClient(proxy=proxy) if proxy else None
    return openai.AsyncOpenAI(
        api_key=api_key,
        http_client=http_client,
        max_retries=max(0, max_attempts - 1),
    )


class OpenAIAdapter:
    id = "openai"

    def __init__(
        self,
        model: str,
        api_key_env: str,
        max_attempts: int = 1,
        temperature: float = 0.2,
        client: Union[openai.AsyncOpenAI, None] = None,
    ) -> None:
        self.model = model
        self.temperature = temperature
        self.id = f"openai:{model}"
        self.client = client or _get_openai_client(
            os.environ.get(api_key_env, ""), max_attempts
        )

    async def identify(
        self, image_bytes: bytes, mime_type: str, prompt: str
    ) -> VisionResponse:
        encoded = base64.b64encode(image_bytes).decode("ascii")
        data_url = f"data:{mime_type};base64,{encoded}"
        messages = [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": prompt},
                    {"type": "image_url", "image_url": {"url": data_url}},
                ],
            }
        ]
        start = time.perf_counter()
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
            )
        except openai.APIStatusError as e:
            raise ProviderError(self._format_api_error(e), e.status_code) from e
        except openai.APIError as e:
            raise ProviderError(
                f"OpenAI API request failed for model '{self.model}': {e}"
            ) from e
        latency_ms = int((time.perf_counter() - start) * 1000)

        text = ""
        if resp.choices:
            text = extract_text(resp.choices[0].message.content)
        usage = resp.usage
        return VisionResponse(
            text=text,
            tokens_in=usage.prompt_tokens if usage else None,
            tokens_out=usage.completion_tokens if usage else None,
            latency_ms=latency_ms,
        )

    def _format_api_error(self, error: openai.APIStatusError) -> str:
        status = error.status_code
        if status == 401:
            return "Authentication failed for OpenAI API. Check OPENAI_API_KEY."
        if status == 404:
            return f"OpenAI model '{self.model}' not found or not accessible."
        if status == 429:
            return "Rate limit exceeded for OpenAI API. Try again in a few moments."
        return f"OpenAI API error ({status}) for model '{self.model}': {error.message}"
