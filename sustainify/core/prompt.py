from __future__ import annotations

IDENTIFY_PROMPT = (
    "You are a recycling assistant. Identify the main item in this image.\n"
    "Respond with ONLY a JSON object, no markdown fences and no extra text, "
    "in exactly this shape:\n"
    '{"name":"<short item name>",'
    '"description":"<material and how to recycle or dispose of it, 1-2 sentences>",'
    '"confidences":[{"name":"<label>","prob":<0..1>}]}'
)
