"""Preprocessing operations for OCR."""

import math
from pathlib import Path
from typing import Dict, List, Tuple

import cv2
import numpy as np
from PIL import Image, UnidentifiedImageError


def load_image(image) -> np.ndarray:
    """Load an image as a BGR uint8 array.

    Args:
        image: File path, PIL Image, or numpy array (gray, BGR or BGRA)

    Returns:
        Image array (H, W, 3) in BGR
    """
    if isinstance(image, (str, Path)):
        try:
            with Image.open(image) as pil_image:
                image = pil_image.convert("RGB")
        except (OSError, UnidentifiedImageError) as e:
            raise ValueError(f"Could not read image {image}: {e}") from e

    if isinstance(image, Image.Image):
        img = np.array(image.convert("RGB"))
        return img[:, :, ::-1].copy()  # RGB to BGR

    if not isinstance(image, np.ndarray):
        raise ValueError(f"Unsupported image type: {type(image).__name__}")

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.ndim == 3 and image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    if image.ndim == 3 and image.shape[2] == 3:
        return image
    raise ValueError(f"Unsupported image shape: {image.shape}")


class DetResizeForTest:
    """Resize image for text detection.

    The longer side is capped at max_image_size, then both sides are
    rounded up to a multiple of base_size.
    """

    def __init__(self, base_size=32, max_image_size=960, **kwargs):
        self.base_size = base_size
        self.max_image_size = max_image_size

    def target_size(self, src_h: int, src_w: int) -> Tuple[int, int]:
        height, width = float(src_h), float(src_w)
        if self.max_image_size and max(height, width) > self.max_image_size:
            if width > height:
                ratio = self.max_image_size / width
            else:
                ratio = self.max_image_size / height
            height *= ratio
            width *= ratio

        resize_h = max(int(math.ceil(height / self.base_size) * self.base_size), self.base_size)
        resize_w = max(int(math.ceil(width / self.base_size) * self.base_size), self.base_size)
        return resize_h, resize_w

    def __call__(self, data: Dict) -> Dict:
        img = data['image']
        src_h, src_w = img.shape[:2]
        resize_h, resize_w = self.target_size(src_h, src_w)

        img = cv2.resize(img, (resize_w, resize_h))

        data['image'] = img
        data['shape'] = np.array([src_h, src_w, resize_h / float(src_h), resize_w / float(src_w)])
        return data


class NormalizeImage:
    """Normalize image values."""

    def __init__(self, scale=1.0 / 255.0, mean=(0.485, 0.456, 0.406),
                 std=(0.229, 0.224, 0.225), **kwargs):
        self.scale = np.float32(scale)
        self.mean = np.array(mean).reshape((1, 1, 3)).astype('float32')
        self.std = np.array(std).reshape((1, 1, 3)).astype('float32')

    def __call__(self, data: Dict) -> Dict:
        img = data['image'].astype('float32')
        img = img * self.scale
        data['image'] = (img - self.mean) / self.std
        return data


class ToCHWImage:
    """Convert image from HWC to CHW format."""

    def __call__(self, data: Dict) -> Dict:
        img = data['image']
        data['image'] = img.transpose((2, 0, 1))
        return data


class KeepKeys:
    """Keep only specified keys in data dict."""

    def __init__(self, keep_keys: List[str], **kwargs):
        self.keep_keys = keep_keys

    def __call__(self, data: Dict) -> Tuple:
        return tuple(data[key] for key in self.keep_keys)


_OPERATORS = {
    "DetResizeForTest": DetResizeForTest,
    "NormalizeImage": NormalizeImage,
    "ToCHWImage": ToCHWImage,
    "KeepKeys": KeepKeys,
}


def create_operators(op_param_list: List[Dict]):
    """Create preprocessing operators from config list.

    Args:
        op_param_list: List of dicts like [{"OpName": {params}}]

    Returns:
        List of operator instances
    """
    ops = []
    for operator in op_param_list:
        if not isinstance(operator, dict) or len(operator) != 1:
            raise ValueError(f"Operator entry must be a single-key dict, got {operator!r}")
        op_name = list(operator)[0]
        if op_name not in _OPERATORS:
            raise ValueError(f"Unknown preprocessing operator: {op_name}")
        param = {} if operator[op_name] is None else operator[op_name]
        ops.append(_OPERATORS[op_name](**param))
    return ops


def transform(data: Dict, ops: List):
    """Apply preprocessing operators sequentially.

    Returns:
        Output of the last operator, or None if any operator returned None
    """
    for op in ops:
        data = op(data)
        if data is None:
            return None
    return data


def resize_norm_rec_img(img: np.ndarray, image_height: int) -> np.ndarray:
    """Resize a line crop to a fixed height and normalize for recognition.

    Aspect ratio is preserved; pixel values map to [-1, 1].

    Returns:
        Processed image (C, H, W) float32
    """
    h, w = img.shape[:2]
    resized_w = max(int(round(w * image_height / float(h))), 1)

    resized_image = cv2.resize(img, (resized_w, image_height), interpolation=cv2.INTER_CUBIC)
    resized_image = resized_image.astype("float32")
    resized_image = resized_image.transpose((2, 0, 1)) / 255
    resized_image -= 0.5
    resized_image /= 0.5
    return resized_image
