"""
Paragraph grouping of recognized text lines.

Lines are put in reading order (top to bottom, rows left to right) and
merged into paragraphs by a directional adjacency test: an element only
pulls in elements to its right on the same line or below it. A group
keeps absorbing elements adjacent to any of its members until nothing
changes.
"""

from functools import cmp_to_key
from typing import List, Sequence

from .config import GroupingConfig
from .types import Box, Paragraph, TextElement

# Two lines whose centers are closer than this share a row when sorting
SAME_ROW_RATIO = 0.5


def average_height(elements: Sequence[TextElement]) -> float:
    if not elements:
        return 0.0
    return sum(el.frame.height for el in elements) / len(elements)


def vertical_overlap_ratio(box1: Box, box2: Box) -> float:
    """Overlap of the two [top, bottom] intervals over the smaller height."""
    overlap = max(0.0, min(box1.bottom, box2.bottom) - max(box1.top, box2.top))
    min_height = min(box1.height, box2.height)
    if min_height <= 0:
        return 0.0
    return overlap / min_height


def are_on_same_line(box1: Box, box2: Box, avg_height: float, config: GroupingConfig) -> bool:
    vertical_offset = abs(box1.center_y - box2.center_y)
    return (
        vertical_overlap_ratio(box1, box2) >= config.min_overlap_ratio
        or vertical_offset < avg_height * config.max_vertical_offset_ratio
    )


def should_group(box1: Box, box2: Box, avg_height: float, config: GroupingConfig) -> bool:
    """Whether box2 continues the paragraph of box1 (to its right or below).

    On one line the gap is measured between facing edges, so two wide
    words a few pixels apart merge even when their centers are far apart.
    Lines below are compared by center distance.
    """
    if are_on_same_line(box1, box2, avg_height, config):
        horizontal_gap = max(0.0, box2.left - box1.right)
        is_right_of = box2.left > box1.left
        return is_right_of and horizontal_gap < avg_height * config.horizontal_threshold_ratio

    vertical_distance = abs(box1.center_y - box2.center_y)
    horizontal_overlap = min(box1.right, box2.right) - max(box1.left, box2.left)
    is_below = box2.top > box1.top
    return (
        is_below
        and vertical_distance < avg_height * config.vertical_threshold_ratio
        and horizontal_overlap > 0
    )


def reading_order(elements: Sequence[TextElement], avg_height: float) -> List[TextElement]:
    """Sort top to bottom; elements on the same row go left to right."""

    def compare(a: TextElement, b: TextElement):
        if abs(a.frame.center_y - b.frame.center_y) < avg_height * SAME_ROW_RATIO:
            return a.frame.left - b.frame.left
        return a.frame.top - b.frame.top

    return sorted(elements, key=cmp_to_key(compare))


def group_text_elements(
    elements: Sequence[TextElement],
    config: GroupingConfig = None,
) -> List[List[TextElement]]:
    """Partition elements into groups of adjacent lines.

    Returns:
        Groups in reading order of their first element; each group is
        itself in reading order
    """
    if config is None:
        config = GroupingConfig()
    if not elements:
        return []

    avg_height = average_height(elements)
    ordered = reading_order(elements, avg_height)

    used = [False] * len(ordered)
    groups = []

    for i in range(len(ordered)):
        if used[i]:
            continue

        group = [i]
        used[i] = True

        changed = True
        while changed:
            changed = False
            for j in range(len(ordered)):
                if used[j]:
                    continue
                if any(
                    should_group(ordered[m].frame, ordered[j].frame, avg_height, config)
                    for m in group
                ):
                    group.append(j)
                    used[j] = True
                    changed = True

        groups.append(reading_order([ordered[idx] for idx in group], avg_height))

    return groups


def create_paragraph(group: Sequence[TextElement]) -> Paragraph:
    """Merge one group into a paragraph."""
    all_x = [x for el in group for x in (el.frame.left, el.frame.right)]
    all_y = [y for el in group for y in (el.frame.top, el.frame.bottom)]

    bounding_box = Box(
        left=min(all_x),
        top=min(all_y),
        width=max(all_x) - min(all_x),
        height=max(all_y) - min(all_y),
    )

    return Paragraph(
        text=" ".join(el.text for el in group),
        confidence=sum(el.confidence for el in group) / len(group),
        bounding_box=bounding_box,
        elements=tuple(group),
    )


def group_into_paragraphs(
    elements: Sequence[TextElement],
    config: GroupingConfig = None,
) -> List[Paragraph]:
    """Group text elements into paragraphs (a partition of the input)."""
    groups = group_text_elements(tuple(elements), config)
    return [create_paragraph(group) for group in groups]
