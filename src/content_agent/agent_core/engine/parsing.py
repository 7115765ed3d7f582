"""JSON extraction from model text and permissive normalization of the final answer."""

import json
import re
from typing import Any, Dict, Optional

from ..logger import get_logger

logger = get_logger(__name__)

FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*\})\s*```")
BARE_JSON = re.compile(r"(\{[\s\S]*\})")
LEADING_PROSE = re.compile(r"^([^{]+?)(?:\s*\{|\s*```)", re.DOTALL)

POST_FIELDS = ("title", "slug", "excerpt", "metaTitle", "metaDescription", "status", "featuredImageId")
MIN_PROSE_SUMMARY = 20
TRUNCATION_NOTE = " (Note: Reached maximum execution turns. Some tasks may be incomplete.)"
NO_CHANGES_SUMMARY = "No changes were made."


def extract_json(text: str) -> str:
    """Return the JSON candidate inside ``text``.

    A fenced block wins over a bare ``{...}`` substring; without either the text is
    returned unchanged.
    """
    match = FENCED_JSON.search(text) or BARE_JSON.search(text)
    return match.group(1) if match else text


def parse_json_object(text: str) -> Optional[Dict[str, Any]]:
    """Parse the JSON object embedded in ``text``, or return None."""
    try:
        parsed = json.loads(extract_json(text))
    except (json.JSONDecodeError, TypeError):
        return None
    return parsed if isinstance(parsed, dict) else None


def tool_calls_of(parsed: Optional[Dict[str, Any]]) -> list:
    """Return the non-empty ``tool_calls`` list of a parsed response, else an empty list."""
    if not parsed:
        return []
    calls = parsed.get("tool_calls")
    return calls if isinstance(calls, list) else []


def mark_truncated(content: str) -> str:
    """Append the truncation note to the summary of a response still requesting tools.

    Returns:
        The re-serialized response, or ``content`` unchanged if it does not parse or
        carries no ``tool_calls``.
    """
    parsed = parse_json_object(content)
    if parsed is None or "tool_calls" not in parsed:
        return content
    parsed["summary"] = str(parsed.get("summary") or "") + TRUNCATION_NOTE
    return json.dumps(parsed)


def normalize_final(content: str) -> Dict[str, Any]:
    """
    Turn the final assistant text into result data.

    - A bare post object (``title``/``slug``/``excerpt`` at top level) is wrapped under ``post``.
    - Otherwise known post fields found at top level are moved into a ``post`` object.
    - Text that does not parse becomes ``{"content": text}``.
    - A ``content`` string holding a JSON object is unwrapped and merged.

    Args:
        content: The final assistant text.

    Returns:
        The normalized data mapping. ``summary`` is left in place.
    """
    parsed = parse_json_object(content)
    if parsed is None:
        data: Dict[str, Any] = {"content": content}
    elif any(parsed.get(key) for key in ("title", "slug", "excerpt")):
        data = {"post": parsed}
    else:
        data = parsed
        if "post" not in data and data:
            moved = {key: data.pop(key) for key in POST_FIELDS if key in data}
            if moved:
                data = {"post": moved, **data}

    inner = data.get("content")
    if isinstance(inner, str):
        try:
            unwrapped = json.loads(inner)
        except json.JSONDecodeError:
            unwrapped = None
        if isinstance(unwrapped, dict):
            data = {**data, **unwrapped}
            if "content" not in unwrapped:
                del data["content"]

    logger.debug(f"Normalized final data keys: {sorted(data)}")
    return data


def synthesize_summary(raw: str, data: Dict[str, Any]) -> str:
    """Derive a summary when the model did not provide one.

    Prose before the first JSON object or fence wins when it has at least 20 characters;
    a response with no JSON at all counts entirely as prose. Otherwise the changed post
    fields and modules are counted.
    """
    match = LEADING_PROSE.search(raw)
    if match:
        prose = match.group(1).strip()
    elif "{" not in raw and "```" not in raw:
        prose = raw.strip()
    else:
        prose = ""
    if len(prose) >= MIN_PROSE_SUMMARY:
        return prose

    changes = []
    post = data.get("post")
    if isinstance(post, dict) and post:
        changes.append(f"Updated {len(post)} post field(s)")
    modules = data.get("modules")
    if isinstance(modules, list):
        changes.append(f"Updated {len(modules)} module(s)")
    if changes:
        return ". ".join(changes) + "."
    return NO_CHANGES_SUMMARY
