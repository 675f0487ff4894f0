"""Parse the JSON payload an LLM embedded in an interview summary.

Summaries are written by the voice-call analysis step and usually look like::

    ```json
    {"Rating": 62, "Technical Knowledge": 53, "Areas for Improvement": [...]}
    ```

The fence is optional; plain JSON is accepted too.
"""

import json
import logging
import re
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?[ \t]*\n?(.*?)```", re.DOTALL | re.IGNORECASE)
_FENCE_MARKER = re.compile(r"```(?:json)?", re.IGNORECASE)


def extract_summary_json(summary: Optional[str]) -> str:
    """Return the text inside the first markdown fence, or the text with stray fences removed.

    Args:
        summary: Raw summary string

    Returns:
        Candidate JSON text (may still be invalid JSON)
    """
    if not summary:
        return ""

    cleaned = summary.strip()

    match = _FENCED_BLOCK.search(cleaned)
    if match:
        return match.group(1).strip()

    # Unterminated or missing fence (truncated LLM output)
    return _FENCE_MARKER.sub("", cleaned).strip()


def parse_summary(summary: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse a summary into a dict.

    Args:
        summary: Raw summary string

    Returns:
        Parsed JSON object, or None when the summary is empty, not JSON, or
        JSON that is not an object.
    """
    payload = extract_summary_json(summary)
    if not payload:
        return None

    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse summary as JSON: %s", e)
        logger.debug("Summary was: %s", payload[:500])
        return None

    if not isinstance(parsed, dict):
        logger.warning("Summary JSON is a %s, expected an object", type(parsed).__name__)
        return None

    return parsed
