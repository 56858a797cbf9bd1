from __future__ import annotations

from typing import Protocol, Union, TypedDict


class VisionResponse(TypedDict, total=False):
    text: str
    tokens_in: Union[int, None]
    tokens_out: Union[int, None]
    latency_ms: int


class VisionAdapter(Protocol):
    id: str

    async def identify(
        self, image_bytes: bytes, mime_type: str, prompt: str
    ) -> VisionResponse: ...
