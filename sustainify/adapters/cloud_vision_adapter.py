from __future__ import annotations

import base64
import json
import os
import time
from typing import Union

import httpx
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..core.errors import ProviderError
from .base import VisionResponse


def labels_to_json(annotations: list[dict]) -> str:
    """Render label annotations in the identify result shape."""
    labels = [a.get("description", "") for a in annotations if a.get("description")]
    result = {
        "name": labels[0] if labels else "Unknown",
        "description": ", ".join(labels),
        "confidences": [
            {"name": a["description"], "prob": round(float(a.get("score", 0.0)), 4)}
            for a in annotations
            if a.get("description")
        ],
    }
    return json.dumps(result, ensure_ascii=False)


class CloudVisionAdapter:
    """Google Cloud Vision label detection.

    Vision returns labels rather than text, so the prompt is ignored and the
    labels are rendered as the JSON object the generative providers are asked
    for.
    """

    id = "vision"

    def __init__(
        self,
        model: str,
        api_key_env: str,
        max_attempts: int = 1,
        max_results: int = 10,
        client: Union[httpx.AsyncClient, None] = None,
    ) -> None:
        self.model = model
        self.api_key = os.environ.get(api_key_env, "")
        self.max_attempts = max_attempts
        self.max_results = max_results
        self.id = f"vision:{model}"
        self.client = client or httpx.AsyncClient(base_url="https://vision.googleapis.com/v1")

    async def identify(
        self, image_bytes: bytes, mime_type: str, prompt: str
    ) -> VisionResponse:
        payload = {
            "requests": [
                {
                    "image": {"content": base64.b64encode(image_bytes).decode("ascii")},
                    "features": [
                        {"type": "LABEL_DETECTION", "maxResults": self.max_results}
                    ],
                }
            ]
        }
        start = time.perf_counter()
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(min=1, max=4),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        ):
            with attempt:
                response = await self.client.post(
                    "/images:annotate",
                    json=payload,
                    params={"key": self.api_key},
                    timeout=30.0,
                )
        latency_ms = int((time.perf_counter() - start) * 1000)
        if response.is_error:
            raise ProviderError(self._format_api_error(response), response.status_code)

        data = response.json()
        results = data.get("responses") or [{}]
        first = results[0]
        if first.get("error"):
            raise ProviderError(
                f"Cloud Vision error: {first['error'].get('message', 'unknown error')}"
            )
        return VisionResponse(
            text=labels_to_json(first.get("labelAnnotations") or []),
            tokens_in=None,
            tokens_out=None,
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
        if status in (401, 403):
            return f"Access denied by Cloud Vision API. Check GOOGLE_VISION_API_KEY. ({message})"
        if status == 429:
            return "Rate limit exceeded for Cloud Vision API. Try again in a few moments."
        return f"Cloud Vision API error ({status}): {message}"
