"""Character-level change counting and diff rendering.

changed_chars() is the sole signal used to decide whether a rewrite is applied
silently (small correction) or staged for confirmation (large rewrite).
"""

import difflib
from enum import Enum


class ChangeSize(str, Enum):
    """Classification of a rewrite against the configured threshold."""

    SMALL = "small"
    LARGE = "large"


def changed_chars(pre: str, post: str) -> int:
    """Count characters inserted and deleted between two texts.

    Aligns the texts character by character and sums the lengths of all
    inserted and deleted runs; unchanged runs are excluded. A substituted
    character therefore counts twice (one deletion plus one insertion).

    Args:
        pre: Text before the edit
        post: Text after the edit

    Returns:
        Non-negative changed-character count (0 for identical texts)

    Examples:
        >>> changed_chars("- Meeting at 3pm", "- Meeting at 4pm")
        2
        >>> changed_chars("abc", "abcdef")
        3
    """
    if pre == post:
        return 0

    # autojunk would treat frequent characters as junk on texts over 200 chars
    matcher = difflib.SequenceMatcher(None, pre, post, autojunk=False)

    total = 0
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        total += (i2 - i1) + (j2 - j1)
    return total


def classify_change(
    pre: str,
    post: str,
    threshold: int,
    inclusive: bool = True,
) -> tuple[ChangeSize, int]:
    """Classify a rewrite as small (apply now) or large (stage for review).

    Args:
        pre: Current text of the target
        post: Proposed text
        threshold: Changed-character cut line
        inclusive: If True, a count equal to the threshold is SMALL

    Returns:
        Tuple of (ChangeSize, changed-character count)
    """
    count = changed_chars(pre, post)
    small = count <= threshold if inclusive else count < threshold
    return (ChangeSize.SMALL if small else ChangeSize.LARGE), count


def generate_unified_diff(
    original: str,
    modified: str,
    fromfile: str = "original",
    tofile: str = "proposed",
    context_lines: int = 3,
) -> str:
    """Generate unified diff between original and modified content.

    Lines that differ only by the presence/absence of a trailing newline
    are treated as identical to avoid showing spurious differences.

    Args:
        original: Original content
        modified: Modified content
        fromfile: Label for original text
        tofile: Label for modified text
        context_lines: Number of context lines to show

    Returns:
        Unified diff as string (empty for identical content)
    """
    original_lines = original.splitlines(keepends=True)
    modified_lines = modified.splitlines(keepends=True)

    # Normalize trailing newlines so the last line never shows as changed
    original_lines = [line if line.endswith('\n') else line + '\n' for line in original_lines]
    modified_lines = [line if line.endswith('\n') else line + '\n' for line in modified_lines]

    diff_lines = difflib.unified_diff(
        original_lines,
        modified_lines,
        fromfile=fromfile,
        tofile=tofile,
        n=context_lines,
    )

    return "".join(line if line.endswith('\n') else line + '\n' for line in diff_lines)
