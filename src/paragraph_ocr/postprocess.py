"""Postprocessing modules for OCR outputs.

- DBPostProcess / extract_regions: detection probability map -> rectified line crops
- CTCLabelDecode / decode_sequence: recognition probabilities -> text and confidence
"""

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import cv2
import numpy as np
import pyclipper
from shapely.geometry import Polygon

from .config import DetectorConfig
from .types import LineCrop
from .utils import (
    clip_points,
    get_rotate_crop_image,
    order_points_clockwise,
    round_half_up,
    sorted_boxes,
)

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


class DBPostProcess:
    """Post-processing for DB (Differentiable Binarization) text detection.

    Converts probability maps to clockwise quadrilaterals in source-image
    coordinates.
    """

    def __init__(
        self,
        thresh=0.1,
        min_size=3,
        max_size=2000,
        unclip_ratio=1.5,
        max_candidates=1000,
    ):
        """Initialize DB post-processor.

        Args:
            thresh: Binarization threshold for probability map
            min_size: Minimum short side of a box in map pixels
            max_size: Maximum short side of a box in map pixels
            unclip_ratio: Ratio for expanding text regions
            max_candidates: Maximum number of contours to consider
        """
        self.thresh = thresh
        self.min_size = min_size
        self.max_size = max_size
        self.unclip_ratio = unclip_ratio
        self.max_candidates = max_candidates

    @classmethod
    def from_config(cls, config: DetectorConfig) -> "DBPostProcess":
        return cls(
            thresh=config.thresh,
            min_size=config.min_box_size,
            max_size=config.max_box_size,
            unclip_ratio=config.unclip_ratio,
            max_candidates=config.max_candidates,
        )

    def __call__(self, pred, dest_width, dest_height) -> List[np.ndarray]:
        """Convert a probability map to boxes.

        Args:
            pred: Probability map, (H, W) with optional leading unit axes
            dest_width: Source image width
            dest_height: Source image height

        Returns:
            List of (4, 2) int32 arrays, clockwise from top-left
        """
        pred = self._as_2d(pred)
        if pred is None:
            return []
        bitmap = pred > self.thresh
        return self.boxes_from_bitmap(bitmap, dest_width, dest_height)

    @staticmethod
    def _as_2d(pred) -> Optional[np.ndarray]:
        pred = np.asarray(pred)
        if pred.size == 0:
            return None
        while pred.ndim > 2 and pred.shape[0] == 1:
            pred = pred[0]
        if pred.ndim != 2:
            logger.debug("Ignoring probability map with shape %s", pred.shape)
            return None
        return pred

    def boxes_from_bitmap(self, bitmap, dest_width, dest_height) -> List[np.ndarray]:
        """Extract quad boxes from binary bitmap."""
        height, width = bitmap.shape

        outs = cv2.findContours(
            (bitmap * 255).astype(np.uint8),
            cv2.RETR_LIST,
            cv2.CHAIN_APPROX_SIMPLE
        )

        if len(outs) == 3:
            contours = outs[1]
        else:
            contours = outs[0]

        num_contours = min(len(contours), self.max_candidates)
        ratio_w = dest_width / float(width)
        ratio_h = dest_height / float(height)

        boxes = []
        for index in range(num_contours):
            points, sside = self.get_mini_boxes(contours[index])
            if sside < self.min_size or sside > self.max_size:
                continue

            expanded = self.unclip(np.array(points), self.unclip_ratio)
            if expanded is None:
                continue

            box, sside = self.get_mini_boxes(expanded.reshape(-1, 1, 2))
            if sside < self.min_size + 2:
                continue

            box = np.array(box, dtype=np.float64)
            box[:, 0] *= ratio_w
            box[:, 1] *= ratio_h

            box = order_points_clockwise(box)
            box = clip_points(round_half_up(box), dest_width, dest_height)

            rect_width = int(np.linalg.norm(box[0] - box[1]))
            rect_height = int(np.linalg.norm(box[0] - box[3]))
            if rect_width <= 3 or rect_height <= 3:
                continue

            boxes.append(box.astype(np.int32))

        logger.debug("%d of %d contours kept as text regions", len(boxes), num_contours)
        return boxes

    def unclip(self, box, unclip_ratio) -> Optional[np.ndarray]:
        """Expand box using Vatti clipping algorithm.

        Returns None for degenerate boxes (zero area or perimeter) and when
        the offset produces no polygon.
        """
        poly = Polygon(box)
        if poly.length == 0 or poly.area == 0:
            return None
        distance = poly.area * unclip_ratio / poly.length
        offset = pyclipper.PyclipperOffset()
        offset.AddPath(
            [tuple(p) for p in np.asarray(box).tolist()],
            pyclipper.JT_ROUND,
            pyclipper.ET_CLOSEDPOLYGON,
        )
        expanded = offset.Execute(distance)
        if not expanded:
            return None
        return np.array(expanded[0], dtype=np.float32)

    def get_mini_boxes(self, contour):
        """Get minimum area rectangle as 4 corners and its short side."""
        bounding_box = cv2.minAreaRect(np.asarray(contour, dtype=np.float32))
        points = sorted(list(cv2.boxPoints(bounding_box)), key=lambda x: x[0])

        index_1, index_2, index_3, index_4 = 0, 1, 2, 3
        if points[1][1] > points[0][1]:
            index_1, index_4 = 0, 1
        else:
            index_1, index_4 = 1, 0

        if points[3][1] > points[2][1]:
            index_2, index_3 = 2, 3
        else:
            index_2, index_3 = 3, 2

        box = [points[index_1], points[index_2], points[index_3], points[index_4]]
        return box, min(bounding_box[1])


def extract_regions(
    prob_map,
    source_image: np.ndarray,
    config: DetectorConfig = None,
) -> List[LineCrop]:
    """Turn a detection probability map into rectified line crops.

    Args:
        prob_map: Probability map at the detector's working resolution
        source_image: Original (unresized) image, (H, W, C)
        config: Detector configuration (uses defaults if None)

    Returns:
        Line crops top to bottom, left to right, each with its source-space polygon
    """
    if config is None:
        config = DetectorConfig()

    src_h, src_w = source_image.shape[:2]
    boxes = DBPostProcess.from_config(config)(prob_map, src_w, src_h)
    boxes = sorted_boxes(boxes)
    if not boxes:
        return []

    def rectify(box):
        return get_rotate_crop_image(source_image, box.astype(np.float32))

    if len(boxes) == 1:
        images = [rectify(boxes[0])]
    else:
        with ThreadPoolExecutor(max_workers=config.num_workers) as executor:
            images = list(executor.map(rectify, boxes))

    return [LineCrop(image=img, polygon=box) for img, box in zip(images, boxes)]


def read_character_dict(
    character_dict_path: Union[str, Path],
    use_space_char: bool = True,
) -> List[str]:
    """Read a recognition dictionary, one character per line.

    Line order defines the class index mapping (class i -> line i - 1).
    """
    character_str = []
    with open(character_dict_path, "rb") as fin:
        lines = fin.readlines()
        for line in lines:
            line = line.decode("utf-8").strip("\n").strip("\r\n")
            character_str.append(line)

    if use_space_char:
        character_str.append(" ")

    return character_str


def decode_indices(
    text_index: np.ndarray,
    text_prob: np.ndarray,
    dictionary: Sequence[str],
    ignored_tokens: Sequence[int] = (0,),
    remove_duplicate: bool = True,
) -> Tuple[str, float]:
    """Greedy CTC decode of per-timestep class indices."""
    text_index = np.asarray(text_index)
    text_prob = np.asarray(text_prob)

    selection = np.ones(len(text_index), dtype=bool)
    if remove_duplicate:
        selection[1:] = text_index[1:] != text_index[:-1]
    for ignored_token in ignored_tokens:
        selection &= text_index != ignored_token

    char_list = []
    conf_list = []
    for text_id, prob in zip(text_index[selection], text_prob[selection]):
        # index 0 is reserved, out-of-range ids are model noise
        if not 1 <= text_id <= len(dictionary):
            continue
        char = dictionary[text_id - 1]
        if not char:
            continue
        char_list.append(char)
        conf_list.append(float(prob))

    text = "".join(char_list).replace("\r", "")
    text = _WHITESPACE_RE.sub(" ", text).strip()
    confidence = float(np.mean(conf_list)) if conf_list else 0.0
    return text, confidence


def decode_sequence(
    preds,
    dictionary: Sequence[str],
    ignored_tokens: Sequence[int] = (0,),
    remove_duplicate: bool = True,
) -> Tuple[str, float]:
    """Decode one recognition output, [1, T, V] or [T, V], to (text, confidence)."""
    preds = np.asarray(preds)
    if preds.ndim == 3:
        preds = preds[0]
    if preds.ndim != 2 or preds.size == 0:
        return "", 0.0

    preds_idx = preds.argmax(axis=1)
    preds_prob = preds.max(axis=1)
    return decode_indices(
        preds_idx, preds_prob, dictionary, ignored_tokens, remove_duplicate
    )


class CTCLabelDecode:
    """CTC decoding for text recognition."""

    def __init__(
        self,
        character_dict_path,
        use_space_char=False,
        ignored_tokens=None,
        remove_duplicate=True,
    ):
        """Initialize CTC decoder.

        Args:
            character_dict_path: Path to character dictionary file
            use_space_char: Include space character in vocabulary
            ignored_tokens: Class indices to drop (default: [0], the CTC blank)
            remove_duplicate: Collapse repeated timesteps
        """
        self.character = read_character_dict(character_dict_path, use_space_char)
        self.ignored_tokens = list(ignored_tokens) if ignored_tokens is not None else [0]
        self.remove_duplicate = remove_duplicate

    def __len__(self):
        return len(self.character)

    def __call__(self, preds) -> List[Tuple[str, float]]:
        """Decode CTC predictions to text.

        Args:
            preds: Prediction array [batch, time, num_classes]

        Returns:
            List of (text, confidence) tuples, one per batch item
        """
        preds = np.asarray(preds)
        if preds.ndim == 2:
            preds = preds[np.newaxis]

        return [
            decode_sequence(
                preds[batch_idx],
                self.character,
                self.ignored_tokens,
                self.remove_duplicate,
            )
            for batch_idx in range(preds.shape[0])
        ]
