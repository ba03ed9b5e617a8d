"""
Rebuild logical text lines from the positioned fragments of one page.

Fragments are ordered top-to-bottom, left-to-right, then joined with line
breaks, paragraph breaks or single spaces depending on the vertical and
horizontal gaps between consecutive fragments.
"""

import logging
import math
import re
from functools import cmp_to_key
from typing import Iterable, List

from .models import TextFragment


logger = logging.getLogger(__name__)

DEFAULT_FRAGMENT_HEIGHT = 10.0
LINE_BREAK_FACTOR = 0.8
PARAGRAPH_BREAK_FACTOR = 2.0
WORD_GAP = 5.0


def _compare_fragments(a: TextFragment, b: TextFragment) -> int:
    # Fragments whose baselines round to the same value share a line
    y_diff = math.floor(b.baseline_y - a.baseline_y + 0.5)
    if y_diff != 0:
        return y_diff
    if a.baseline_x < b.baseline_x:
        return -1
    if a.baseline_x > b.baseline_x:
        return 1
    return 0


def sort_fragments(fragments: Iterable[TextFragment]) -> List[TextFragment]:
    """Order fragments by descending baseline Y, then ascending baseline X on the same line."""
    return sorted(fragments, key=cmp_to_key(_compare_fragments))


def average_height(fragments: List[TextFragment]) -> float:
    """Mean fragment height, counting unknown or zero heights as the default."""
    if not fragments:
        return DEFAULT_FRAGMENT_HEIGHT
    heights = [fragment.height or DEFAULT_FRAGMENT_HEIGHT for fragment in fragments]
    return sum(heights) / len(heights)


def _clean_whitespace(text: str) -> str:
    text = re.sub(r' +', ' ', text)
    text = re.sub(r'\n +', '\n', text)
    text = re.sub(r' +\n', '\n', text)
    return text.strip()


def reconstruct_page_text(fragments: Iterable[TextFragment]) -> str:
    """
    Convert one page's fragments into text with explicit line and paragraph breaks.

    A vertical jump above 0.8x the average fragment height starts a new
    line; a jump above 2x the average height starts a new paragraph
    ("\\n\\n"). Within a line, a horizontal gap above 5 units becomes a
    single space.

    Args:
        fragments: Positioned text fragments of a single page

    Returns:
        Reconstructed page text; empty string when there are no fragments
    """
    ordered = sort_fragments(fragments)
    if not ordered:
        return ""

    avg_height = average_height(ordered)
    line_threshold = avg_height * LINE_BREAK_FACTOR
    paragraph_threshold = avg_height * PARAGRAPH_BREAK_FACTOR

    result = ""
    last_y = None
    last_x = None

    for fragment in ordered:
        current_y = fragment.baseline_y
        current_x = fragment.baseline_x

        if last_y is not None:
            y_diff = abs(last_y - current_y)
            if y_diff > line_threshold:
                result += "\n\n" if y_diff > paragraph_threshold else "\n"
            elif last_x is not None:
                x_diff = current_x - last_x
                if x_diff > WORD_GAP and not result[-1:].isspace():
                    result += " "

        if fragment.text:
            result += fragment.text

        last_y = current_y
        last_x = current_x + (fragment.width or 0)

    text = _clean_whitespace(result)
    logger.debug(f"Reconstructed page text from {len(ordered)} fragments ({len(text)} characters)")
    return text
