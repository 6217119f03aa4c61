import pytest

from paragraph_ocr.config import GroupingConfig
from paragraph_ocr.grouping import (
    group_into_paragraphs,
    group_text_elements,
    reading_order,
    should_group,
    vertical_overlap_ratio,
)
from paragraph_ocr.types import Box

from conftest import make_element


def test_no_elements_no_paragraphs():
    assert group_into_paragraphs([]) == []


def test_same_row_small_gap_merges():
    a = make_element(0, 0, 50, 20, text="Hello")
    b = make_element(60, 2, 50, 20, text="world")

    paragraphs = group_into_paragraphs([b, a])

    assert len(paragraphs) == 1
    assert paragraphs[0].text == "Hello world"
    assert paragraphs[0].elements == (a, b)


def test_same_row_wide_gap_splits():
    avg_height = 20
    a = make_element(0, 0, 50, 20, text="Hello")
    b = make_element(50 + avg_height * 3, 2, 50, 20, text="world")

    paragraphs = group_into_paragraphs([a, b])

    assert [p.text for p in paragraphs] == ["Hello", "world"]


def test_stacked_overlapping_lines_merge_top_to_bottom():
    top = make_element(0, 0, 100, 20, text="first")
    bottom = make_element(10, 22, 80, 20, text="second")

    paragraphs = group_into_paragraphs([bottom, top])

    assert len(paragraphs) == 1
    assert paragraphs[0].text == "first second"
    assert [el.text for el in paragraphs[0].elements] == ["first", "second"]


def test_stacked_lines_without_horizontal_overlap_split():
    left = make_element(0, 0, 50, 20, text="left")
    right_below = make_element(200, 22, 50, 20, text="right")
    assert len(group_into_paragraphs([left, right_below])) == 2


def test_far_apart_lines_split():
    top = make_element(0, 0, 100, 20, text="title")
    body = make_element(0, 100, 100, 20, text="body")
    assert [p.text for p in group_into_paragraphs([top, body])] == ["title", "body"]


def test_group_absorbs_elements_adjacent_to_any_member():
    a = make_element(0, 0, 60, 20, text="a")
    b = make_element(70, 0, 60, 20, text="b")
    # below b only, no horizontal overlap with a
    c = make_element(80, 21, 50, 20, text="c")

    paragraphs = group_into_paragraphs([c, b, a])

    assert len(paragraphs) == 1
    assert paragraphs[0].text == "a b c"


def test_paragraph_box_and_confidence():
    a = make_element(10, 5, 50, 20, confidence=0.8)
    b = make_element(70, 8, 40, 18, confidence=0.6)

    (paragraph,) = group_into_paragraphs([a, b])

    assert paragraph.bounding_box == Box(10, 5, 100, 21)
    assert paragraph.confidence == pytest.approx(0.7)


def test_partition_and_determinism():
    elements = [
        make_element(0, 0, 80, 20, text="t1"),
        make_element(90, 1, 60, 20, text="t2"),
        make_element(0, 21, 80, 20, text="t3"),
        make_element(300, 0, 60, 20, text="side"),
        make_element(0, 200, 100, 20, text="footer"),
        make_element(310, 22, 50, 20, text="side2"),
    ]

    first = group_into_paragraphs(elements)
    second = group_into_paragraphs(list(reversed(elements)))

    members = [el for p in first for el in p.elements]
    assert sorted(members, key=id) == sorted(elements, key=id)
    assert len(members) == len(elements)
    assert [p.text for p in first] == [p.text for p in second]
    assert [p.text for p in first] == ["t1 t2 t3", "side side2", "footer"]


def test_reading_order_treats_close_centers_as_one_row():
    right = make_element(100, 0, 50, 20, text="right")
    left = make_element(0, 6, 50, 20, text="left")
    below = make_element(0, 40, 50, 20, text="below")

    ordered = reading_order([below, right, left], avg_height=20)

    assert [el.text for el in ordered] == ["left", "right", "below"]


def test_adjacency_is_directional():
    config = GroupingConfig()
    left = Box(0, 0, 50, 20)
    right = Box(90, 0, 50, 20)

    assert should_group(left, right, 20, config)
    assert not should_group(right, left, 20, config)
    # reading order starts from the left element, so they still merge
    elements = [make_element(90, 0, 50, 20, text="b"), make_element(0, 0, 50, 20, text="a")]
    assert [p.text for p in group_into_paragraphs(elements, config)] == ["a b"]


def test_config_ratios_change_grouping():
    a = make_element(0, 0, 50, 20, text="a")
    b = make_element(60, 2, 50, 20, text="b")

    strict = GroupingConfig(horizontal_threshold_ratio=0.25)
    assert len(group_text_elements([a, b], strict)) == 2

    loose = GroupingConfig(horizontal_threshold_ratio=10)
    assert len(group_text_elements([a, b], loose)) == 1


def test_zero_height_frames_do_not_fail():
    a = make_element(0, 0, 50, 0, text="a")
    b = make_element(0, 0, 50, 0, text="b")
    assert vertical_overlap_ratio(a.frame, b.frame) == 0.0
    paragraphs = group_into_paragraphs([a, b])
    assert sum(len(p.elements) for p in paragraphs) == 2


def test_same_line_gap_is_measured_between_edges():
    # centers are 405 apart, the facing edges only 5
    left = make_element(0, 0, 400, 20, text="left")
    right = make_element(405, 0, 400, 20, text="right")
    assert [p.text for p in group_into_paragraphs([left, right])] == ["left right"]
