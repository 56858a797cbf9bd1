import asyncio
import base64
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from sustainify.adapters.mock_adapter import MockAdapter
from sustainify.core import identify
from sustainify.core.errors import (
    IdentifyError,
    IdentifyTimeoutError,
    InvalidImageError,
    MissingImageError,
)
from sustainify.core.utils import extract_text

IMAGE_B64 = base64.b64encode(b"\x89PNG\r\n\x1a\n" + b"\x00" * 300).decode("ascii")


class SlowAdapter:
    id = "slow"

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self.finished = False

    async def identify(self, image_bytes, mime_type, prompt):
        await asyncio.sleep(self.delay)
        self.finished = True
        return {"text": '{"name":"late"}'}


class BrokenAdapter:
    id = "broken"

    async def identify(self, image_bytes, mime_type, prompt):
        raise RuntimeError("connection reset")


def test_structured_result_is_merged_with_model():
    result = identify.identify_sync(MockAdapter(), IMAGE_B64)
    assert result["name"] == "plastic bottle"
    assert result["model"] == "mock:mock"
    assert result["confidences"][0]["prob"] == 0.92


def test_unparseable_output_returns_raw_fallback():
    reply = "I think it is a bottle. " * 200
    result = identify.identify_sync(MockAdapter(reply=reply), IMAGE_B64)
    assert result["name"] == "unknown"
    assert result["description"] == identify.PARSE_FAILURE_DESCRIPTION
    assert len(result["raw"]) == identify.RAW_TEXT_LIMIT
    assert result["model"] == "mock:mock"


def test_missing_or_short_image_is_rejected():
    with pytest.raises(MissingImageError):
        identify.identify_sync(MockAdapter(), None)
    with pytest.raises(MissingImageError):
        identify.identify_sync(MockAdapter(), "abc")


def test_invalid_base64_is_rejected():
    with pytest.raises(InvalidImageError):
        identify.identify_sync(MockAdapter(), "!" * 250)


def test_data_url_prefix_is_accepted():
    result = identify.identify_sync(MockAdapter(), f"data:image/png;base64,{IMAGE_B64}")
    assert result["name"] == "plastic bottle"


def test_guess_mime_type():
    assert identify.guess_mime_type(b"\x89PNG....") == "image/png"
    assert identify.guess_mime_type(b"\xff\xd8\xff\xe0") == "image/jpeg"
    assert identify.guess_mime_type(b"????") == "image/jpeg"


def test_timeout_stops_waiting_without_cancelling():
    async def _run():
        adapter = SlowAdapter(delay=0.2)
        with pytest.raises(IdentifyTimeoutError):
            await identify.identify_image(adapter, IMAGE_B64, timeout=0.01)
        assert not adapter.finished
        await asyncio.sleep(0.3)
        assert adapter.finished

    asyncio.run(_run())


def test_fast_call_wins_race():
    async def _run():
        return await identify.race_with_timeout(asyncio.sleep(0, result="ok"), 1.0)

    assert asyncio.run(_run()) == "ok"


def test_unexpected_error_is_wrapped():
    with pytest.raises(IdentifyError):
        identify.identify_sync(BrokenAdapter(), IMAGE_B64)


def test_extract_text_shapes():
    assert extract_text("plain") == "plain"
    assert extract_text(None) == ""
    assert extract_text([{"type": "text", "text": "a"}, {"text": "b"}, "c"]) == "abc"
    assert extract_text({"content": [{"text": "x"}]}) == "x"
    assert extract_text({"parts": [{"text": "y"}]}) == "y"
    assert extract_text(12) == ""


def test_deeply_nested_reply_falls_back():
    reply = '{"a": ' + "[" * 100000 + "]" * 100000 + "}"
    result = identify.identify_sync(MockAdapter(reply=reply), IMAGE_B64)
    assert result["name"] == "unknown"
    assert len(result["raw"]) == identify.RAW_TEXT_LIMIT
