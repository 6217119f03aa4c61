"""
Text Detection Module - Stage 1 of OCR Pipeline

Detects text regions in images using DBNet architecture and cuts them
into rectified line crops.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from .onnx_base import ONNXInferenceBase
from .config import DetectorConfig
from .preprocess import create_operators, transform
from .postprocess import extract_regions
from .types import LineCrop

logger = logging.getLogger(__name__)


class TextDetector:
    """Text detection module.

    Takes images and returns rectified line crops with their source
    quadrilaterals.
    """

    def __init__(
        self,
        model_path: Optional[Union[str, Path]] = None,
        config: DetectorConfig = None,
        session=None,
    ):
        """Initialize text detector.

        Args:
            model_path: Path to detection ONNX model
            config: Detector configuration (uses defaults if None)
            session: Ready inference session, used instead of model_path
        """
        if config is None:
            config = DetectorConfig()

        self.config = config

        if session is None:
            if model_path is None:
                raise ValueError("Either model_path or session is required")
            session = ONNXInferenceBase(
                model_path,
                use_gpu=config.use_gpu,
                use_tensorrt=config.use_tensorrt,
                intra_op_num_threads=config.intra_op_num_threads,
                inter_op_num_threads=config.inter_op_num_threads,
                log_severity_level=config.log_severity_level,
            )
        self.session = session

        self.preprocess_ops = create_operators([
            {
                "DetResizeForTest": {
                    "base_size": config.base_size,
                    "max_image_size": config.max_image_size,
                }
            },
            {
                "NormalizeImage": {
                    "std": [0.229, 0.224, 0.225],
                    "mean": [0.485, 0.456, 0.406],
                    "scale": 1.0 / 255.0,
                }
            },
            {"ToCHWImage": None},
            {"KeepKeys": {"keep_keys": ["image", "shape"]}},
        ])

    def preprocess(self, image: np.ndarray):
        """Resize and normalize a BGR image into a (1, C, H, W) tensor."""
        result = transform({"image": image.copy()}, self.preprocess_ops)
        if result is None:
            return None
        img, _ = result
        return np.expand_dims(img, axis=0).astype(np.float32)

    def probability_map(self, image: np.ndarray, run_options=None) -> np.ndarray:
        """Run the detection model and return its raw probability map."""
        img = self.preprocess(image)
        if img is None:
            return np.array([])
        input_feed = self.session.get_input_feed(img)
        outputs = self.session.run(input_feed, run_options=run_options)
        return outputs[0]

    def detect_single(self, image: np.ndarray, run_options=None) -> List[LineCrop]:
        """Detect text in a single BGR image.

        Returns:
            Line crops with polygons in the coordinates of ``image``
        """
        prob_map = self.probability_map(image, run_options=run_options)
        crops = extract_regions(prob_map, image, self.config)
        logger.debug("Detected %d text regions", len(crops))
        return crops

    def __repr__(self):
        return f"TextDetector(thresh={self.config.thresh}, unclip_ratio={self.config.unclip_ratio})"
