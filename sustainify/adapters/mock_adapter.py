from __future__ import annotations

import time

from .base import VisionResponse

MOCK_REPLY = (
    '```json\n{"name":"plastic bottle","description":"PET bottle, recyclable '
    'with plastics","confidences":[{"name":"plastic bottle","prob":0.92}]}\n```'
)


class MockAdapter:
    """Simple adapter that returns canned responses for testing."""

    def __init__(self, model: str = "mock", reply: str = MOCK_REPLY) -> None:
        self.id = f"mock:{model}"
        self.reply = reply

    async def identify(
        self, image_bytes: bytes, mime_type: str, prompt: str
    ) -> VisionResponse:
        start = time.perf_counter()
        latency_ms = int((time.perf_counter() - start) * 1000)
        return VisionResponse(
            text=self.reply,
            tokens_in=0,
            tokens_out=0,
            latency_ms=latency_ms,
        )
