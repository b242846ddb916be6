"""
Response Segmenter - splits a coach response into display text and payloads.

The coach interleaves prose with fenced JSON blocks (tagged ``json`` or
``action``). A response that hits the output-token limit can end inside a
block; such a dangling block is stripped and flagged, never executed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import List

logger = logging.getLogger(__name__)

FENCE = "```"

# Opening fence, tag, body, closing fence. Non-greedy so pairs are matched
# left to right.
_CLOSED_BLOCK_RE = re.compile(r"```[ \t]*([A-Za-z0-9_+-]*)[ \t]*\r?\n?(.*?)```", re.DOTALL)

# Untagged fences carry payloads too; any other tag is prose for the user
PAYLOAD_TAGS = frozenset({"", "json", "action"})

TRUNCATION_WARNING = (
    "⚠️ My response was cut off before I could finish the workout details. "
    "Please ask me for a shorter version (for example fewer weeks or fewer workouts)."
)


@dataclass
class SegmentedResponse:
    payloads: List[str] = field(default_factory=list)
    display_text: str = ""
    had_truncated_block: bool = False


def segment_response(text: str) -> SegmentedResponse:
    """Extract closed fenced payloads and detect a trailing truncated block."""
    text = text or ""
    payloads: List[str] = []
    parts: List[str] = []
    pos = 0
    for match in _CLOSED_BLOCK_RE.finditer(text):
        parts.append(text[pos:match.start()])
        if match.group(1).lower() in PAYLOAD_TAGS:
            payloads.append(match.group(2).strip())
        else:
            parts.append(match.group(0))
        pos = match.end()

    # Only the text after the last closed pair can hold an unmatched fence.
    tail = text[pos:]
    had_truncated = False
    dangling_at = tail.find(FENCE)
    if dangling_at != -1:
        had_truncated = True
        logger.info("SEGMENTER: dangling fence, dropping %d chars", len(tail) - dangling_at)
        tail = tail[:dangling_at]

    display = _collapse_blank_lines("".join(parts) + tail).strip()
    logger.debug("SEGMENTER: %d payload(s), truncated=%s", len(payloads), had_truncated)
    return SegmentedResponse(payloads=payloads, display_text=display, had_truncated_block=had_truncated)


def apply_truncation_notice(display_text: str, had_truncated_block: bool, parsed_payloads: int) -> str:
    """Append the truncation warning when no closed block in the response parsed."""
    if not had_truncated_block or parsed_payloads > 0:
        return display_text
    if not display_text:
        return TRUNCATION_WARNING
    return f"{display_text}\n\n{TRUNCATION_WARNING}"


def _collapse_blank_lines(text: str) -> str:
    return re.sub(r"\n{3,}", "\n\n", text)
