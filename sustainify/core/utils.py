from typing import Any


def extract_text(payload: Any) -> str:
    """Flatten a provider reply into plain text.

    Providers answer with a string, a list of content parts, a dict wrapping
    either of those, or nothing at all.
    """
    if payload is None:
        return ""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, list):
        return "".join(extract_text(part) for part in payload)
    if isinstance(payload, dict):
        if isinstance(payload.get("text"), str):
            return payload["text"]
        for key in ("content", "parts", "message"):
            if key in payload:
                return extract_text(payload[key])
    return ""
