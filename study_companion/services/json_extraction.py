"""Greedy JSON extraction from free-form model output.

Everything from the first opening bracket to the last closing bracket is
treated as the payload. Text containing two separate arrays therefore spans
both and fails to parse; callers fall back instead of repairing it.
"""

import json


def _greedy_slice(raw_text, opener, closer):
    if not raw_text:
        return None
    start = raw_text.find(opener)
    end = raw_text.rfind(closer)
    if start == -1 or end <= start:
        return None
    return raw_text[start:end + 1]


def extract_json_array(raw_text):
    """Return the substring from the first '[' to the last ']', or None."""
    return _greedy_slice(raw_text, '[', ']')


def extract_json_object(raw_text):
    """Return the substring from the first '{' to the last '}', or None."""
    return _greedy_slice(raw_text, '{', '}')


def parse_json_list(raw_text):
    """Parse the greedy array substring into a list of dicts, or None."""
    candidate = extract_json_array(raw_text)
    if candidate is None:
        return None
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return [item for item in parsed if isinstance(item, dict)]


def parse_json_object(raw_text):
    candidate = extract_json_object(raw_text)
    if candidate is None:
        return None
    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None
