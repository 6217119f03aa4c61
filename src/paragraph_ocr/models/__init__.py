"""
Model file management for paragraph_ocr.

Usage:
    from paragraph_ocr.models import ModelRegistry

    registry = ModelRegistry("./models")
    path = registry.get("detection", "detector")
    print(registry.status())
"""

from .registry import ModelRegistry, MODELS_DIR_ENV
from .config import ALL_GROUPS, DETECTION, RECOGNITION

__all__ = [
    "ModelRegistry",
    "MODELS_DIR_ENV",
    "ALL_GROUPS",
    "DETECTION",
    "RECOGNITION",
]
