"""Configuration classes for OCR modules."""

from dataclasses import dataclass
from typing import Dict, List, Optional


@dataclass
class DetectorConfig:
    """Configuration for text detection stage."""
    thresh: float = 0.1  # Binarization threshold
    min_box_size: int = 3  # Minimum short side of a candidate box
    max_box_size: int = 2000  # Maximum short side of a candidate box
    unclip_ratio: float = 1.5  # Text region expansion ratio
    base_size: int = 32  # Input sides are rounded up to a multiple of this
    max_image_size: int = 960  # Longest input side before rounding
    max_candidates: int = 1000  # Maximum number of contours considered
    num_workers: Optional[int] = None  # Threads for rectification (None = executor default)
    use_gpu: bool = False  # Enable CUDA GPU acceleration
    use_tensorrt: bool = False  # Enable TensorRT acceleration
    intra_op_num_threads: int = 0  # 0 lets onnxruntime decide
    inter_op_num_threads: int = 0
    log_severity_level: int = 2


@dataclass
class RecognizerConfig:
    """Configuration for text recognition stage."""
    image_height: int = 48  # Crops are resized to this height
    confidence_threshold: float = 0.5  # Minimum mean confidence to keep a line
    remove_duplicate_chars: bool = True  # Collapse repeated timesteps
    ignored_tokens: Optional[List[int]] = None  # Class indices never emitted, e.g. [0] (CTC blank)
    use_space_char: bool = True  # Include space character in vocabulary
    num_workers: Optional[int] = None  # Threads for per-crop inference
    use_gpu: bool = False
    use_tensorrt: bool = False
    intra_op_num_threads: int = 0
    inter_op_num_threads: int = 0
    log_severity_level: int = 2

    def __post_init__(self):
        if self.ignored_tokens is None:
            self.ignored_tokens = [0]


@dataclass(frozen=True)
class GroupingConfig:
    """Ratios controlling paragraph grouping, as multiples of average line height.

    Non-positive values are accepted; they make grouping either merge
    everything or nothing.
    """
    vertical_threshold_ratio: float = 1.2
    horizontal_threshold_ratio: float = 2.5
    min_overlap_ratio: float = 0.3
    max_vertical_offset_ratio: float = 0.5


@dataclass(frozen=True)
class LanguageConfig:
    """Recognition model and dictionary for one language."""
    model: str  # file key in the model registry
    dictionary: str
    name: str


DETECTION_MODEL = "detector"

LANGUAGES: Dict[str, LanguageConfig] = {
    "en": LanguageConfig(model="en_recognizer", dictionary="en_dict", name="English"),
    "ch": LanguageConfig(model="ch_recognizer", dictionary="ch_dict", name="Chinese"),
    "ja": LanguageConfig(model="ja_recognizer", dictionary="ja_dict", name="Japanese"),
    # Korean shares the Chinese PP-OCRv4 recognizer with its own dictionary
    "ko": LanguageConfig(model="ch_recognizer", dictionary="ko_dict", name="Korean"),
    "latin": LanguageConfig(model="latin_recognizer", dictionary="latin_dict", name="Latin"),
}

DEFAULT_LANGUAGE = "en"


def get_language(language: str) -> LanguageConfig:
    """Look up a language, failing with the list of supported codes."""
    if language not in LANGUAGES:
        available = ", ".join(LANGUAGES)
        raise ValueError(f"Unsupported language: {language}. Available: {available}")
    return LANGUAGES[language]
