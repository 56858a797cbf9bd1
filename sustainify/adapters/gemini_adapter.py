from __future__ import annotations

import base64
import os
import time
from typing import Union

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core.errors import ProviderError
from ..core.utils import extract_text
from .base import VisionResponse


class GeminiAdapter:
    id = "gemini"

    def __init__(
        self,
        model: str,
        api_key_env: str,
        max_attempts: int = 1,
        temperature: float = 0.2,
        client: Union[httpx.AsyncClient, None] = None,
    ) -> None:
        self.model = model
        self.api_key = os.environ.get(api_key_env, "")
        self.max_attempts = max_attempts
        self.temperature = temperature
        self.id = f"gemini:{model}"
        self.client = client or httpx.AsyncClient(
            base_url="https://generativelanguage.googleapis.com/v1beta"
        )

    async def identify(
        self, image_bytes: bytes, mime_type: str, prompt: str
    ) -> VisionResponse:
        payload = {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": prompt},
                        {
                            "inline_data": {
                                "mime_type": mime_type,
                                "data": base64.b64encode(image_bytes).decode("ascii"),
                            }
                        },
                    ],
                }
            ],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": 1024,
                "candidateCount": 1,
            },
        }
        url = f"/models/{self.model}:generateContent"
        headers = {"Content-Type": "application/json"}

        start = time.perf_counter()
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                response = await self.client.post(
                    url,
                    json=payload,
                    headers=headers,
                    params={"key": self.api_key},
                    timeout=30.0,
                )
        latency_ms = int((time.perf_counter() - start) * 1000)
        if response.is_error:
            raise ProviderError(self._format_api_error(response), response.status_code)

        data = response.json()
        candidates = data.get("candidates") or []
        text = extract_text(candidates[0].get("content")) if candidates else ""

        usage = data.get("usageMetadata", {})
        return VisionResponse(
            text=text,
            tokens_in=usage.get("promptTokenCount"),
            tokens_out=usage.get("candidatesTokenCount"),
            latency_ms=latency_ms,
        )

    def _format_api_error(self, response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        error = payload.get("error", {}) if isinstance(payload, dict) else {}
        message = error.get("message") or response.text[:200]
        status = response.status_code
        if status in (400, 401) and "api key" in str(message).lower():
            return "Invalid Gemini API key. Check GEMINI_API_KEY."
        if status == 403:
            return f"Access forbidden for Gemini model '{self.model}': {message}"
        if status == 404:
            return f"Gemini model '{self.model}' not found."
        if status == 429:
            return "Rate limit exceeded for Gemini API. Try again in a few moments."
        return f"Gemini API error ({status}) for model '{self.model}': {message}"
