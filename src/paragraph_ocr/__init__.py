"""
Paragraph OCR
ONNX text detection and recognition with reading-order paragraph grouping

Three stages:
- TextDetector: probability map -> rectified line crops
- TextRecognizer: line crops -> text and confidence (CTC)
- group_into_paragraphs: text lines -> paragraphs

High-level interface:
- Ocr: complete pipeline
"""

from .pipeline import Ocr
from .text_detector import TextDetector
from .text_recognizer import TextRecognizer
from .config import DetectorConfig, RecognizerConfig, GroupingConfig, LANGUAGES
from .postprocess import extract_regions, decode_sequence, read_character_dict
from .grouping import group_into_paragraphs
from .types import Box, LineCrop, TextElement, Paragraph

__version__ = "0.1.0"
__all__ = [
    "Ocr",
    "TextDetector",
    "TextRecognizer",
    "DetectorConfig",
    "RecognizerConfig",
    "GroupingConfig",
    "LANGUAGES",
    "extract_regions",
    "decode_sequence",
    "read_character_dict",
    "group_into_paragraphs",
    "Box",
    "LineCrop",
    "TextElement",
    "Paragraph",
]
