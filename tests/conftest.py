"""
Shared fixtures: a small dictionary and stand-in inference sessions so the
pipeline runs without model files.
"""

import numpy as np
import pytest

from paragraph_ocr.types import Box, TextElement

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def make_preds(classes, num_classes=30, prob=0.9):
    """[1, T, V] probabilities whose arg-max follows ``classes``."""
    preds = np.full((1, len(classes), num_classes), (1 - prob) / (num_classes - 1), dtype=np.float32)
    for t, c in enumerate(classes):
        preds[0, t, c] = prob
    return preds


def encode_text(text, alphabet=ALPHABET):
    """Class sequence a CTC model would emit for ``text`` (blank after each char)."""
    classes = [0]
    for ch in text:
        classes.extend([alphabet.index(ch) + 1, 0])
    return classes


def make_element(left, top, width, height, text="x", confidence=0.9):
    polygon = (
        (left, top),
        (left + width, top),
        (left + width, top + height),
        (left, top + height),
    )
    return TextElement(
        text=text,
        confidence=confidence,
        frame=Box(left, top, width, height),
        polygon=polygon,
    )


class StubSession:
    """Mimics ONNXInferenceBase: ``respond`` maps the input tensor to one output."""

    def __init__(self, respond):
        self.respond = respond
        self.calls = 0
        self.run_options = []

    def get_input_feed(self, image_array):
        return {"x": image_array}

    def run(self, input_data, run_options=None):
        self.calls += 1
        self.run_options.append(run_options)
        return [self.respond(input_data["x"])]


def stacked_bars_map(tensor):
    """Detection output with two stacked horizontal bars."""
    _, _, h, w = tensor.shape
    prob = np.zeros((1, 1, h, w), dtype=np.float32)
    prob[0, 0, 20:32, 20:180] = 0.9
    prob[0, 0, 48:60, 20:180] = 0.9
    return prob


def empty_map(tensor):
    _, _, h, w = tensor.shape
    return np.zeros((1, 1, h, w), dtype=np.float32)


def bright_dark_recognizer(tensor):
    """Reads 'HELLO' from bright crops and 'WORLD' from dark ones."""
    text = "HELLO" if tensor.mean() > 0 else "WORLD"
    return make_preds(encode_text(text))


@pytest.fixture
def dict_path(tmp_path):
    path = tmp_path / "dict.txt"
    path.write_text("\n".join(ALPHABET) + "\n", encoding="utf-8")
    return path


@pytest.fixture
def two_line_image():
    """200x100 BGR page: bright upper line, dark lower line, gray paper."""
    img = np.full((100, 200, 3), 128, dtype=np.uint8)
    img[14:26, 15:145] = 255
    img[36:48, 15:145] = 0
    return img
