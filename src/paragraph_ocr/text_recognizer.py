"""
Text Recognition Module - Stage 2 of OCR Pipeline

Recognizes text from rectified line crops with a CTC model.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np

from .onnx_base import ONNXInferenceBase
from .config import RecognizerConfig
from .postprocess import CTCLabelDecode
from .preprocess import resize_norm_rec_img
from .types import LineCrop, TextElement

logger = logging.getLogger(__name__)


class TextRecognizer:
    """Text recognition module.

    Each crop is run through the model on its own, so crops keep their
    natural width; results are placed back by crop index.
    """

    def __init__(
        self,
        model_path: Optional[Union[str, Path]],
        char_dict_path: Union[str, Path],
        config: RecognizerConfig = None,
        session=None,
    ):
        """Initialize text recognizer.

        Args:
            model_path: Path to recognition ONNX model
            char_dict_path: Path to character dictionary file
            config: Recognizer configuration (uses defaults if None)
            session: Ready inference session, used instead of model_path
        """
        if config is None:
            config = RecognizerConfig()

        self.config = config

        if not Path(char_dict_path).is_file():
            raise FileNotFoundError(f"Character dictionary not found: {char_dict_path}")

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

        self.postprocess_op = CTCLabelDecode(
            character_dict_path=str(char_dict_path),
            use_space_char=config.use_space_char,
            ignored_tokens=config.ignored_tokens,
            remove_duplicate=config.remove_duplicate_chars,
        )

    def recognize_single(self, img: np.ndarray, run_options=None) -> Tuple[str, float]:
        """Recognize text in a single line image (BGR)."""
        norm_img = resize_norm_rec_img(img, self.config.image_height)
        norm_img = norm_img[np.newaxis, :]

        input_feed = self.session.get_input_feed(norm_img)
        outputs = self.session.run(input_feed, run_options=run_options)
        return self.postprocess_op(outputs[0])[0]

    def recognize(
        self,
        img_list: Sequence[np.ndarray],
        run_options=None,
    ) -> List[Tuple[str, float]]:
        """Recognize text in a list of line images.

        Returns:
            List of (text, confidence) tuples in the order of img_list
        """
        if not img_list:
            return []

        rec_res = [("", 0.0)] * len(img_list)

        with ThreadPoolExecutor(max_workers=self.config.num_workers) as executor:
            future_to_index = {
                executor.submit(self.recognize_single, img, run_options): idx
                for idx, img in enumerate(img_list)
            }
            for future in as_completed(future_to_index):
                rec_res[future_to_index[future]] = future.result()

        return rec_res

    def __call__(self, crops: Sequence[LineCrop], run_options=None) -> List[TextElement]:
        """Recognize line crops and keep confident, non-empty lines.

        Returns:
            Text elements in crop order, each tied to its crop's polygon
        """
        rec_res = self.recognize([crop.image for crop in crops], run_options=run_options)

        elements = []
        for crop, (text, confidence) in zip(crops, rec_res):
            if confidence < self.config.confidence_threshold:
                continue
            if not text.strip():
                continue
            elements.append(TextElement.from_recognition(text, confidence, crop.polygon))

        logger.debug("Recognized %d of %d lines above threshold", len(elements), len(crops))
        return elements

    def __repr__(self):
        return f"TextRecognizer(dict_size={len(self.postprocess_op)})"
