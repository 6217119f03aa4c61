"""Result types shared by the OCR stages.

``to_dict`` on each type produces the JSON payload shape returned by
``Ocr.detect`` (camelCase keys where downstream consumers expect them).
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class Box:
    """Axis-aligned rectangle in source-image pixels."""
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def bottom(self) -> float:
        return self.top + self.height

    @property
    def center_x(self) -> float:
        return self.left + self.width / 2

    @property
    def center_y(self) -> float:
        return self.top + self.height / 2

    @classmethod
    def from_polygon(cls, polygon) -> "Box":
        """Rounded envelope of a polygon; empty polygons give a zero box."""
        points = np.asarray(polygon, dtype=np.float64).reshape(-1, 2)
        if points.size == 0:
            return cls(0, 0, 0, 0)
        xs, ys = points[:, 0], points[:, 1]
        return cls(
            left=int(round(xs.min())),
            top=int(round(ys.min())),
            width=int(round(xs.max() - xs.min())),
            height=int(round(ys.max() - ys.min())),
        )

    def to_dict(self) -> Dict[str, float]:
        return {
            "left": self.left,
            "top": self.top,
            "width": self.width,
            "height": self.height,
        }


@dataclass
class LineCrop:
    """Rectified text line image and the source quadrilateral it came from."""
    image: np.ndarray
    polygon: np.ndarray  # (4, 2), clockwise from top-left


@dataclass(frozen=True)
class TextElement:
    """One recognized text line."""
    text: str
    confidence: float
    frame: Box
    polygon: Tuple[Tuple[int, int], ...]

    @classmethod
    def from_recognition(cls, text: str, confidence: float, polygon) -> "TextElement":
        points = tuple(
            (int(x), int(y)) for x, y in np.asarray(polygon).reshape(-1, 2).tolist()
        )
        return cls(
            text=text.strip(),
            confidence=float(confidence),
            frame=Box.from_polygon(polygon),
            polygon=points,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "confidence": self.confidence,
            "frame": self.frame.to_dict(),
            "polygon": [list(p) for p in self.polygon],
        }


@dataclass(frozen=True)
class Paragraph:
    """A group of adjacent text elements in reading order."""
    text: str
    confidence: float
    bounding_box: Box
    elements: Tuple[TextElement, ...]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "confidence": self.confidence,
            "boundingBox": self.bounding_box.to_dict(),
            "elements": [el.to_dict() for el in self.elements],
        }


def build_result(
    elements: Sequence[TextElement],
    paragraphs: List[Paragraph] = None,
) -> Dict[str, Any]:
    """Assemble the ``detect`` payload; paragraph keys only when grouped."""
    result = {
        "totalElements": len(elements),
        "data": [el.to_dict() for el in elements],
    }
    if paragraphs is not None:
        result["totalParagraphs"] = len(paragraphs)
        result["paragraphs"] = [p.to_dict() for p in paragraphs]
    return result
