"""
Model definitions: filenames of every weight and dictionary file.

Single source of truth for the files the OCR pipeline loads. Files are
looked up in a local models directory first and, when a HuggingFace
repository is configured, downloaded from it.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class ModelFile:
    """A single model file, relative to the models directory."""
    filename: str
    description: str = ""


@dataclass(frozen=True)
class ModelGroup:
    """A logical group of model files that belong together."""
    name: str
    description: str
    files: Dict[str, ModelFile]  # key -> ModelFile


# ---------------------------------------------------------------------------
# PaddleOCR: DB text detection
# ---------------------------------------------------------------------------
DETECTION = ModelGroup(
    name="detection",
    description="PP-OCRv4 DB text detector (shared by all languages)",
    files={
        "detector": ModelFile(
            filename="ch_PP-OCRv4_det_infer.onnx",
            description="DB text detector",
        ),
    },
)

# ---------------------------------------------------------------------------
# PaddleOCR: CTC text recognition, one model/dictionary pair per language
# ---------------------------------------------------------------------------
RECOGNITION = ModelGroup(
    name="recognition",
    description="PP-OCR CTC text recognizers and character dictionaries",
    files={
        "en_recognizer": ModelFile(
            filename="en_PP-OCRv4_rec_infer.onnx",
            description="English recognizer",
        ),
        "ch_recognizer": ModelFile(
            filename="ch_PP-OCRv4_rec_infer.onnx",
            description="Chinese recognizer (also used for Korean)",
        ),
        "ja_recognizer": ModelFile(
            filename="japan_PP-OCRv3_rec_infer.onnx",
            description="Japanese recognizer",
        ),
        "latin_recognizer": ModelFile(
            filename="latin_PP-OCRv3_rec_infer.onnx",
            description="Latin-script recognizer",
        ),
        "en_dict": ModelFile(filename="en_dict.txt", description="English dictionary"),
        "ch_dict": ModelFile(filename="ch_dict.txt", description="Chinese dictionary"),
        "ja_dict": ModelFile(filename="japan_dict.txt", description="Japanese dictionary"),
        "ko_dict": ModelFile(filename="korean_dict.txt", description="Korean dictionary"),
        "latin_dict": ModelFile(filename="latin_dict.txt", description="Latin dictionary"),
    },
)

# ---------------------------------------------------------------------------
# Master registry
# ---------------------------------------------------------------------------
ALL_GROUPS: Dict[str, ModelGroup] = {
    "detection": DETECTION,
    "recognition": RECOGNITION,
}
