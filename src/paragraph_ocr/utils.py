"""Geometry helpers for OCR pipeline."""

from typing import List

import cv2
import numpy as np


def order_points_clockwise(pts: np.ndarray) -> np.ndarray:
    """Order 4 points as [top-left, top-right, bottom-right, bottom-left].

    The smallest and largest x+y sums are the top-left and bottom-right
    anchors; of the remaining pair the one further right is top-right.
    """
    pts = np.asarray(pts, dtype=np.float64).reshape(-1, 2)
    rect = np.zeros((4, 2), dtype=np.float64)
    s = pts.sum(axis=1)
    rect[0] = pts[np.argmin(s)]
    rect[2] = pts[np.argmax(s)]
    tmp = np.delete(pts, (np.argmin(s), np.argmax(s)), axis=0)
    if tmp[0][0] > tmp[1][0]:
        rect[1], rect[3] = tmp[0], tmp[1]
    else:
        rect[1], rect[3] = tmp[1], tmp[0]
    return rect


def clip_points(points: np.ndarray, img_width: float, img_height: float) -> np.ndarray:
    """Clamp points into [0, width] x [0, height]."""
    points = np.array(points, dtype=np.float64)
    points[:, 0] = np.clip(points[:, 0], 0, img_width)
    points[:, 1] = np.clip(points[:, 1], 0, img_height)
    return points


def get_rotate_crop_image(img: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Crop and rotate text region from image.

    Args:
        img: Source image
        points: Text region points (4x2 array), clockwise from top-left

    Returns:
        Cropped text image; crops at least 1.5 times taller than wide are
        rotated by 90 degrees so vertical lines read horizontally.
    """
    points = np.asarray(points, dtype=np.float32)
    img_crop_width = int(
        max(
            np.linalg.norm(points[0] - points[1]),
            np.linalg.norm(points[2] - points[3])
        )
    )
    img_crop_height = int(
        max(
            np.linalg.norm(points[0] - points[3]),
            np.linalg.norm(points[1] - points[2])
        )
    )

    pts_std = np.float32([
        [0, 0],
        [img_crop_width, 0],
        [img_crop_width, img_crop_height],
        [0, img_crop_height]
    ])

    M = cv2.getPerspectiveTransform(points, pts_std)
    dst_img = cv2.warpPerspective(
        img,
        M,
        (img_crop_width, img_crop_height),
        borderMode=cv2.BORDER_REPLICATE,
        flags=cv2.INTER_CUBIC
    )

    dst_img_height, dst_img_width = dst_img.shape[0:2]
    if dst_img_height * 1.0 / dst_img_width >= 1.5:
        dst_img = np.ascontiguousarray(np.rot90(dst_img))

    return dst_img


def sorted_boxes(dt_boxes: List[np.ndarray]) -> List[np.ndarray]:
    """Sort text boxes from top to bottom, left to right.

    Boxes whose top-left corners are within 10 pixels vertically count as
    one row.
    """
    _boxes = sorted(dt_boxes, key=lambda x: (x[0][1], x[0][0]))

    for i in range(len(_boxes) - 1):
        for j in range(i, -1, -1):
            if abs(_boxes[j + 1][0][1] - _boxes[j][0][1]) < 10 and \
               (_boxes[j + 1][0][0] < _boxes[j][0][0]):
                _boxes[j], _boxes[j + 1] = _boxes[j + 1], _boxes[j]
            else:
                break

    return _boxes


def round_half_up(values: np.ndarray) -> np.ndarray:
    """Round to the nearest integer, halves away from negative infinity."""
    return np.floor(np.asarray(values, dtype=np.float64) + 0.5)
