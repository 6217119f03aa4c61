"""
High-level OCR Pipeline
Combines detection, recognition and paragraph grouping into one call
"""

import dataclasses
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from .config import (
    DEFAULT_LANGUAGE,
    DETECTION_MODEL,
    LANGUAGES,
    DetectorConfig,
    GroupingConfig,
    LanguageConfig,
    RecognizerConfig,
    get_language,
)
from .grouping import group_into_paragraphs
from .models import ModelRegistry
from .preprocess import load_image
from .text_detector import TextDetector
from .text_recognizer import TextRecognizer
from .types import build_result

logger = logging.getLogger(__name__)


class Ocr:
    """
    Complete OCR pipeline: detection, recognition and paragraph grouping.

    Usage:
        ocr = Ocr.create(language="en", models_dir="./models")
        result = ocr.detect("page.png")
        for paragraph in result["paragraphs"]:
            print(paragraph["text"])

    One instance may serve concurrent ``detect`` calls. The grouping
    configuration is swapped as a whole under a lock and each call works
    on the value it read when it started.
    """

    def __init__(
        self,
        detector: TextDetector,
        recognizer: TextRecognizer,
        grouping_config: Optional[GroupingConfig] = None,
        language: str = DEFAULT_LANGUAGE,
    ):
        self.text_detector = detector
        self.text_recognizer = recognizer
        self.language = language
        self._grouping_config = grouping_config or GroupingConfig()
        self._grouping_lock = threading.Lock()

    @classmethod
    def create(
        cls,
        language: str = DEFAULT_LANGUAGE,
        detection_threshold: Optional[float] = None,
        confidence_threshold: Optional[float] = None,
        min_box_size: Optional[int] = None,
        max_box_size: Optional[int] = None,
        unclip_ratio: Optional[float] = None,
        base_size: Optional[int] = None,
        max_image_size: Optional[int] = None,
        image_height: Optional[int] = None,
        remove_duplicate_chars: Optional[bool] = None,
        detection_model_path: Optional[Union[str, Path]] = None,
        recognition_model_path: Optional[Union[str, Path]] = None,
        dictionary_path: Optional[Union[str, Path]] = None,
        grouping: Optional[Mapping[str, float]] = None,
        models_dir: Optional[Union[str, Path]] = None,
        repo_id: Optional[str] = None,
        use_gpu: bool = False,
        num_workers: Optional[int] = None,
    ) -> "Ocr":
        """
        Build an OCR instance from model files.

        Args:
            language: Recognition language code (see ``available_languages``)
            detection_threshold: Probability map binarization threshold
            confidence_threshold: Minimum mean confidence of a kept line
            min_box_size: Minimum short side of a detected box
            max_box_size: Maximum short side of a detected box
            unclip_ratio: Box expansion ratio
            base_size: Detection input sides are multiples of this
            max_image_size: Longest detection input side
            image_height: Recognition input height
            remove_duplicate_chars: Collapse repeated CTC timesteps
            detection_model_path: Custom detection model path
            recognition_model_path: Custom recognition model path
            dictionary_path: Custom dictionary path
            grouping: Overrides for GroupingConfig fields
            models_dir: Directory holding the model files
            repo_id: HuggingFace repository to download missing files from
            use_gpu: Enable CUDA GPU acceleration
            num_workers: Worker threads for rectification and recognition

        Raises:
            ValueError: unsupported language (before anything is loaded)
            FileNotFoundError: a model or dictionary file is missing
        """
        lang_config = get_language(language)

        det_overrides = {
            "thresh": detection_threshold,
            "min_box_size": min_box_size,
            "max_box_size": max_box_size,
            "unclip_ratio": unclip_ratio,
            "base_size": base_size,
            "max_image_size": max_image_size,
        }
        det_config = DetectorConfig(
            use_gpu=use_gpu,
            num_workers=num_workers,
            **{k: v for k, v in det_overrides.items() if v is not None},
        )

        rec_overrides = {
            "confidence_threshold": confidence_threshold,
            "image_height": image_height,
            "remove_duplicate_chars": remove_duplicate_chars,
        }
        rec_config = RecognizerConfig(
            use_gpu=use_gpu,
            num_workers=num_workers,
            **{k: v for k, v in rec_overrides.items() if v is not None},
        )

        grouping_config = dataclasses.replace(GroupingConfig(), **dict(grouping or {}))

        registry = ModelRegistry(models_dir, repo_id=repo_id)
        if detection_model_path is None:
            detection_model_path = registry.get("detection", DETECTION_MODEL)
        if recognition_model_path is None:
            recognition_model_path = registry.get("recognition", lang_config.model)
        if dictionary_path is None:
            dictionary_path = registry.get("recognition", lang_config.dictionary)

        logger.info("Initializing OCR pipeline (%s)", lang_config.name)
        detector = TextDetector(detection_model_path, det_config)
        recognizer = TextRecognizer(recognition_model_path, dictionary_path, rec_config)

        return cls(detector, recognizer, grouping_config, language=language)

    def detect(self, image, grouped: bool = True, run_options=None) -> Dict[str, Any]:
        """
        Detect and recognize text in an image.

        Args:
            image: File path, PIL Image or BGR numpy array
            grouped: Also return paragraphs
            run_options: onnxruntime.RunOptions passed to every inference
                call; set ``terminate`` on it to cancel

        Returns:
            {"totalElements", "data"} plus {"totalParagraphs", "paragraphs"}
            when grouped
        """
        grouping_config = self.get_grouping_config()

        img = load_image(image)
        crops = self.text_detector.detect_single(img, run_options=run_options)
        elements = self.text_recognizer(crops, run_options=run_options)

        paragraphs = None
        if grouped:
            paragraphs = group_into_paragraphs(elements, grouping_config)

        return build_result(elements, paragraphs)

    def set_grouping_config(
        self,
        config: Optional[Union[GroupingConfig, Mapping[str, float]]] = None,
        **kwargs,
    ) -> None:
        """Update grouping configuration; unspecified fields keep their value."""
        if isinstance(config, GroupingConfig):
            updates = dataclasses.asdict(config)
        else:
            updates = dict(config or {})
        updates.update(kwargs)

        with self._grouping_lock:
            self._grouping_config = dataclasses.replace(self._grouping_config, **updates)

    def get_grouping_config(self) -> GroupingConfig:
        """Current grouping configuration (an immutable value)."""
        with self._grouping_lock:
            return self._grouping_config

    @staticmethod
    def available_languages() -> Dict[str, LanguageConfig]:
        return dict(LANGUAGES)

    def __repr__(self):
        return (
            f"Ocr(\n"
            f"  language={self.language},\n"
            f"  detector={self.text_detector},\n"
            f"  recognizer={self.text_recognizer}\n"
            f")"
        )
