"""Split a labeled free-text LLM response into named sections.

Prompts ask the model to answer in a fixed layout::

    OVERALL PERFORMANCE GRADE: B
    GRADE EXPLANATION: ...
    KEY INSIGHT: ...

Labels are located in order, each search starting after the previous label,
so every section is the window between its label and the next label that was
found. Anything missing or empty falls back to the caller's default; parsing
never raises on malformed output.
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

SectionValue = Union[str, List[str]]

_LIST_MARKER = re.compile(r"^[ \t]*(?:-|\d+\.)\s+", re.MULTILINE)

# Line prefix of a numbered label, e.g. the "2. " in "2. KEY INSIGHT:"
_LABEL_ENUMERATOR = re.compile(r"[ \t]*\d+\.[ \t]*")

_GRADE = re.compile(r"^\s*([A-Fa-f])([+-])?(?![A-Za-z])")


@dataclass(frozen=True)
class SectionSpec:
    """One expected section of a response.

    Attributes:
        label: Exact label text including the colon, e.g. "KEY INSIGHT:"
        field: Output key for the section
        default: Value used when the label is missing or its body is empty
        is_list: Split the body into bullet/numbered items
    """

    label: str
    field: str
    default: SectionValue = ""
    is_list: bool = False


def split_list_items(body: str) -> List[str]:
    """Split a section body on line-leading "-" or "1." markers."""
    items = _LIST_MARKER.split(body)
    return [item.strip() for item in items if item.strip()]


def _locate_labels(text: str, specs: Sequence[SectionSpec]) -> List[Optional[Tuple[int, int]]]:
    """Find (start, end) of each label, searching forward from the previous hit."""
    positions: List[Optional[Tuple[int, int]]] = []
    cursor = 0
    for spec in specs:
        index = text.find(spec.label, cursor) if spec.label else -1
        if index == -1:
            positions.append(None)
            continue
        end = index + len(spec.label)
        positions.append((index, end))
        cursor = end
    return positions


def _window_end(text: str, label_start: int) -> int:
    """End of the section before a label, excluding the label's own "2. " enumerator."""
    line_start = text.rfind("\n", 0, label_start) + 1
    if _LABEL_ENUMERATOR.fullmatch(text, line_start, label_start):
        return line_start
    return label_start


def _default_for(spec: SectionSpec) -> SectionValue:
    if isinstance(spec.default, list):
        return list(spec.default)
    return spec.default


def parse_sections(text: Optional[str], specs: Sequence[SectionSpec]) -> Dict[str, SectionValue]:
    """
    Extract every section described by ``specs`` from ``text``.

    Args:
        text: Raw model output (None is treated as empty)
        specs: Sections in the order the prompt asked for them

    Returns:
        Mapping of each spec's field to a trimmed string, or a list of items
        for list sections.
    """
    text = text if isinstance(text, str) else ""
    positions = _locate_labels(text, specs)

    parsed: Dict[str, SectionValue] = {}
    missing = []

    for i, spec in enumerate(specs):
        position = positions[i]
        if position is None:
            parsed[spec.field] = _default_for(spec)
            missing.append(spec.field)
            continue

        next_start = next(
            (later[0] for later in positions[i + 1 :] if later is not None),
            None,
        )
        if next_start is None:
            end = len(text)
        else:
            end = max(position[1], _window_end(text, next_start))
        body = text[position[1] : end].strip()

        if spec.is_list:
            items = split_list_items(body)
            parsed[spec.field] = items if items else _default_for(spec)
        else:
            parsed[spec.field] = body if body else _default_for(spec)

    if missing:
        logger.info("Response missing sections: %s", ", ".join(missing))

    return parsed


def normalize_grade(value: Optional[str], default: str = "N/A") -> str:
    """Reduce a grade section to a letter A-F with an optional +/- modifier."""
    if not value:
        return default
    match = _GRADE.match(value)
    if not match:
        return default
    return match.group(1).upper() + (match.group(2) or "")
