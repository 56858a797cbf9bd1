from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from collections.abc import Awaitable
from typing import Any, TypeVar, Union

from ..adapters.base import VisionAdapter
from .errors import (
    IdentifyError,
    IdentifyTimeoutError,
    InvalidImageError,
    MissingImageError,
    SustainifyError,
)
from .normalizer import normalize
from .prompt import IDENTIFY_PROMPT
from .utils import extract_text

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_IMAGE_LENGTH = 200
RAW_TEXT_LIMIT = 2000
DEFAULT_TIMEOUT = 20.0
PARSE_FAILURE_DESCRIPTION = "Could not parse model output as JSON."

# calls abandoned by the timeout race; held so they are not garbage collected
_abandoned: set[asyncio.Task] = set()

_MAGIC_MIME = (
    (b"\x89PNG", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF8", "image/gif"),
    (b"RIFF", "image/webp"),
)


def validate_image(image: Any) -> bytes:
    if not image or not isinstance(image, str):
        raise MissingImageError("No image provided")
    if len(image) < MIN_IMAGE_LENGTH:
        raise MissingImageError("Image payload is too small to be a real image")
    if image.startswith("data:") and "," in image:
        image = image.split(",", 1)[1]
    try:
        return base64.b64decode(image, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageError("Image is not valid base64") from exc


def guess_mime_type(image_bytes: bytes) -> str:
    for magic, mime in _MAGIC_MIME:
        if image_bytes.startswith(magic):
            return mime
    return "image/jpeg"


async def race_with_timeout(call: Awaitable[T], timeout: float) -> T:
    """Wait for ``call`` at most ``timeout`` seconds.

    On timeout the call is left running and its result is discarded.
    """
    task = asyncio.ensure_future(call)
    done, _ = await asyncio.wait({task}, timeout=timeout)
    if task not in done:
        _abandoned.add(task)
        task.add_done_callback(_discard_abandoned)
        raise IdentifyTimeoutError(f"Provider did not answer within {timeout:g}s")
    return task.result()


def _discard_abandoned(task: asyncio.Task) -> None:
    _abandoned.discard(task)
    if not task.cancelled() and task.exception() is not None:
        logger.info("Abandoned identify call failed: %s", task.exception())


def fallback_result(text: str, model_id: str) -> dict[str, Any]:
    return {
        "name": "unknown",
        "description": PARSE_FAILURE_DESCRIPTION,
        "raw": text[:RAW_TEXT_LIMIT],
        "model": model_id,
    }


async def identify_image(
    adapter: VisionAdapter,
    image: Union[str, None],
    timeout: float = DEFAULT_TIMEOUT,
    prompt: str = IDENTIFY_PROMPT,
) -> dict[str, Any]:
    """Send ``image`` (base64) to ``adapter`` and return the identify payload.

    Returns the normalized model object merged with ``model``, or the raw
    fallback when the model output cannot be parsed.
    """
    image_bytes = validate_image(image)
    mime_type = guess_mime_type(image_bytes)
    try:
        resp = await race_with_timeout(
            adapter.identify(image_bytes, mime_type, prompt), timeout
        )
    except SustainifyError:
        raise
    except Exception as e:
        logger.exception("Identify call to %s failed", adapter.id)
        raise IdentifyError(f"Identify call to {adapter.id} failed") from e

    text = extract_text(resp.get("text") if isinstance(resp, dict) else resp)
    logger.info(
        "Identify via %s answered in %sms (%d chars)",
        adapter.id,
        resp.get("latency_ms") if isinstance(resp, dict) else None,
        len(text),
    )
    data = normalize(text)
    if data is None:
        logger.warning("Could not parse output from %s", adapter.id)
        return fallback_result(text, adapter.id)
    return {**data, "model": adapter.id}


def identify_sync(*args, **kwargs) -> dict[str, Any]:
    return asyncio.run(identify_image(*args, **kwargs))
