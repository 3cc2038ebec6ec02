"""
Line differ for comparing two HTML documents.

Produces a line-level edit script, a flat added/removed/unchanged view, and a
row-aligned two-column view for synchronized side-by-side display.
"""

from difflib import SequenceMatcher

from .models import AlignedRow, DiffLine, DiffSegment, DiffSummary


def split_lines(text: str) -> list[str]:
    """
    Split text on newline.

    An empty document has no lines; otherwise ``"\\n".join`` of the result
    gives back the input exactly (including a trailing newline).
    """
    if text is None:
        raise TypeError("text must be a string, got None")
    if text == "":
        return []
    return text.split("\n")


def join_lines(lines) -> str:
    return "\n".join(lines)


def diff_lines(text_a: str, text_b: str) -> list[DiffSegment]:
    """
    Compute a line-granularity edit script between two texts.

    Uses difflib's longest-matching-block algorithm over whole lines. A
    replaced block is emitted as a delete segment followed by an insert
    segment.

    Args:
        text_a: The first document (lines only here are ``delete``)
        text_b: The second document (lines only here are ``insert``)

    Returns:
        Segments in document order
    """
    lines_a = split_lines(text_a)
    lines_b = split_lines(text_b)

    # autojunk would treat frequent lines (closing tags, blank lines) as noise
    matcher = SequenceMatcher(None, lines_a, lines_b, autojunk=False)

    segments: list[DiffSegment] = []
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            segments.append(DiffSegment("equal", tuple(lines_a[i1:i2])))
            continue
        if tag in ("delete", "replace"):
            segments.append(DiffSegment("delete", tuple(lines_a[i1:i2])))
        if tag in ("insert", "replace"):
            segments.append(DiffSegment("insert", tuple(lines_b[j1:j2])))

    return segments


def reconstruct(segments: list[DiffSegment], side: str) -> str:
    """
    Rebuild one input from an edit script.

    Args:
        segments: Output of :func:`diff_lines`
        side: ``"a"`` keeps equal+delete lines, ``"b"`` keeps equal+insert lines
    """
    if side not in ("a", "b"):
        raise ValueError(f"side must be 'a' or 'b': {side}")

    wanted = "delete" if side == "a" else "insert"
    lines: list[str] = []
    for segment in segments:
        if segment.op in ("equal", wanted):
            lines.extend(segment.lines)
    return join_lines(lines)


def to_diff_lines(segments: list[DiffSegment]) -> list[DiffLine]:
    """Flatten segments into one classified line per entry."""
    kinds = {"equal": "unchanged", "insert": "added", "delete": "removed"}
    return [DiffLine(kinds[segment.op], line) for segment in segments for line in segment.lines]


def align(text_a: str, text_b: str) -> list[AlignedRow]:
    """Build the side-by-side view of two texts."""
    return align_segments(diff_lines(text_a, text_b))


def align_segments(segments: list[DiffSegment]) -> list[AlignedRow]:
    """
    Build row-aligned side-by-side rows from an edit script.

    Equal lines fill both columns, deleted lines leave the right column
    empty, inserted lines leave the left column empty. Each side's line
    counter only advances on rows where that side has content.
    """
    rows: list[AlignedRow] = []
    left_no = 1
    right_no = 1

    for segment in segments:
        for line in segment.lines:
            if segment.op == "equal":
                rows.append(AlignedRow(left_no, line, "normal", right_no, line, "normal"))
                left_no += 1
                right_no += 1
            elif segment.op == "delete":
                rows.append(AlignedRow(left_no, line, "removed", None, "", "empty"))
                left_no += 1
            else:
                rows.append(AlignedRow(None, "", "empty", right_no, line, "added"))
                right_no += 1

    return rows


def summarize_diff(text_a: str, text_b: str) -> DiffSummary:
    """
    Collect added and removed lines for display.

    Blank and whitespace-only lines are left out of the added/removed lists;
    the full segment list is kept for alignment.
    """
    segments = diff_lines(text_a, text_b)
    return summarize_segments(segments)


def summarize_segments(segments: list[DiffSegment]) -> DiffSummary:
    added: list[str] = []
    removed: list[str] = []

    for segment in segments:
        visible = [line for line in segment.lines if line.strip()]
        if segment.op == "insert":
            added.extend(visible)
        elif segment.op == "delete":
            removed.extend(visible)

    return DiffSummary(added=added, removed=removed, segments=segments)
