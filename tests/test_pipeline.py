import dataclasses

import numpy as np
import onnxruntime
import pytest
from PIL import Image

from paragraph_ocr import GroupingConfig, Ocr
from paragraph_ocr.config import DetectorConfig, RecognizerConfig
from paragraph_ocr.onnx_base import ONNXInferenceBase, ONNXRuntimeError
from paragraph_ocr.preprocess import DetResizeForTest, load_image
from paragraph_ocr.text_detector import TextDetector
from paragraph_ocr.text_recognizer import TextRecognizer

from conftest import (
    StubSession,
    bright_dark_recognizer,
    empty_map,
    encode_text,
    make_preds,
    stacked_bars_map,
)


def _build_ocr(dict_path, det_respond, rec_respond, grouping_config=None, rec_config=None):
    detector = TextDetector(config=DetectorConfig(), session=StubSession(det_respond))
    recognizer = TextRecognizer(
        None, dict_path, rec_config or RecognizerConfig(), session=StubSession(rec_respond)
    )
    return Ocr(detector, recognizer, grouping_config)


def test_detect_two_stacked_lines_into_one_paragraph(dict_path, two_line_image):
    ocr = _build_ocr(dict_path, stacked_bars_map, bright_dark_recognizer)

    result = ocr.detect(two_line_image)

    assert result["totalElements"] == 2
    assert [el["text"] for el in result["data"]] == ["HELLO", "WORLD"]
    assert result["totalParagraphs"] == 1
    paragraph = result["paragraphs"][0]
    assert paragraph["text"] == "HELLO WORLD"
    assert [el["text"] for el in paragraph["elements"]] == ["HELLO", "WORLD"]
    assert paragraph["confidence"] == pytest.approx(0.9)


def test_result_payload_shape(dict_path, two_line_image):
    ocr = _build_ocr(dict_path, stacked_bars_map, bright_dark_recognizer)

    result = ocr.detect(two_line_image)

    assert set(result) == {"totalElements", "data", "totalParagraphs", "paragraphs"}
    element = result["data"][0]
    assert set(element) == {"text", "confidence", "frame", "polygon"}
    assert set(element["frame"]) == {"left", "top", "width", "height"}
    assert len(element["polygon"]) == 4
    for x, y in element["polygon"]:
        assert 0 <= x <= 200 and 0 <= y <= 100
    assert set(result["paragraphs"][0]) == {"text", "confidence", "boundingBox", "elements"}


def test_polygons_follow_their_crops(dict_path, two_line_image):
    ocr = _build_ocr(dict_path, stacked_bars_map, bright_dark_recognizer)

    data = ocr.detect(two_line_image, grouped=False)["data"]

    hello = next(el for el in data if el["text"] == "HELLO")
    world = next(el for el in data if el["text"] == "WORLD")
    assert hello["frame"]["top"] < world["frame"]["top"]


def test_empty_detection_map(dict_path, two_line_image):
    ocr = _build_ocr(dict_path, empty_map, bright_dark_recognizer)

    result = ocr.detect(two_line_image)

    assert result["totalElements"] == 0
    assert result["data"] == []
    assert result["totalParagraphs"] == 0
    assert result["paragraphs"] == []


def test_ungrouped_result_has_no_paragraph_keys(dict_path, two_line_image):
    ocr = _build_ocr(dict_path, stacked_bars_map, bright_dark_recognizer)
    result = ocr.detect(two_line_image, grouped=False)
    assert set(result) == {"totalElements", "data"}


def test_low_confidence_and_blank_lines_are_dropped(dict_path, two_line_image):
    def recognizer(tensor):
        if tensor.mean() > 0:
            return make_preds(encode_text("HELLO"), prob=0.3)
        return make_preds([0] * 10)

    ocr = _build_ocr(dict_path, stacked_bars_map, recognizer)
    result = ocr.detect(two_line_image)

    assert result["totalElements"] == 0
    assert result["totalParagraphs"] == 0


def test_confidence_threshold_is_inclusive(dict_path, two_line_image):
    ocr = _build_ocr(
        dict_path,
        stacked_bars_map,
        lambda t: make_preds(encode_text("HI"), prob=0.5),
        rec_config=RecognizerConfig(confidence_threshold=0.5),
    )
    assert ocr.detect(two_line_image)["totalElements"] == 2


def test_grouping_config_updates(dict_path):
    ocr = _build_ocr(dict_path, empty_map, bright_dark_recognizer)

    ocr.set_grouping_config(horizontal_threshold_ratio=4.0)
    ocr.set_grouping_config({"min_overlap_ratio": 0.1})

    config = ocr.get_grouping_config()
    assert config == GroupingConfig(horizontal_threshold_ratio=4.0, min_overlap_ratio=0.1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.min_overlap_ratio = 1.0
    with pytest.raises(TypeError):
        ocr.set_grouping_config(not_a_ratio=1.0)


def test_detect_uses_config_read_at_start(dict_path, two_line_image):
    holder = {}

    def recognizer(tensor):
        # another caller changes grouping while this call is in flight
        holder["ocr"].set_grouping_config(vertical_threshold_ratio=0.0)
        return bright_dark_recognizer(tensor)

    ocr = _build_ocr(dict_path, stacked_bars_map, recognizer)
    holder["ocr"] = ocr

    assert ocr.detect(two_line_image)["totalParagraphs"] == 1
    assert ocr.detect(two_line_image)["totalParagraphs"] == 2


def test_create_rejects_unknown_language_before_loading(tmp_path):
    with pytest.raises(ValueError, match="Unsupported language: xx"):
        Ocr.create(language="xx", models_dir=tmp_path / "missing")


def test_create_reports_missing_model_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        Ocr.create(language="en", models_dir=tmp_path)


def test_available_languages():
    languages = Ocr.available_languages()
    assert set(languages) == {"en", "ch", "ja", "ko", "latin"}
    assert languages["en"].name == "English"


def test_recognizer_requires_dictionary(tmp_path):
    with pytest.raises(FileNotFoundError):
        TextRecognizer(None, tmp_path / "nope.txt", session=StubSession(lambda t: t))


def test_detector_input_is_multiple_of_base_size():
    assert DetResizeForTest(32, 960).target_size(100, 200) == (128, 224)
    assert DetResizeForTest(32, 960).target_size(10, 10) == (32, 32)
    # longest side capped before rounding
    assert DetResizeForTest(32, 960).target_size(1000, 2000) == (480, 960)


def test_load_image_variants(tmp_path):
    rgb = np.zeros((4, 6, 3), dtype=np.uint8)
    rgb[..., 0] = 255  # red
    bgr = load_image(Image.fromarray(rgb))
    assert bgr.shape == (4, 6, 3)
    assert bgr[0, 0].tolist() == [0, 0, 255]

    path = tmp_path / "red.png"
    Image.fromarray(rgb).save(path)
    assert load_image(str(path))[0, 0].tolist() == [0, 0, 255]

    assert load_image(np.zeros((4, 6), dtype=np.uint8)).shape == (4, 6, 3)
    assert load_image(np.zeros((4, 6, 4), dtype=np.uint8)).shape == (4, 6, 3)

    bad = tmp_path / "bad.png"
    bad.write_bytes(b"not an image")
    with pytest.raises(ValueError):
        load_image(bad)


def test_run_options_reach_every_inference_call(dict_path, two_line_image):
    ocr = _build_ocr(dict_path, stacked_bars_map, bright_dark_recognizer)
    run_options = onnxruntime.RunOptions()

    ocr.detect(two_line_image, run_options=run_options)

    det_session = ocr.text_detector.session
    rec_session = ocr.text_recognizer.session
    assert det_session.run_options == [run_options]
    assert rec_session.calls == 2
    assert all(opts is run_options for opts in rec_session.run_options)


def test_inference_failure_is_wrapped(tmp_path):
    class FailingSession:
        def run(self, output_names, input_feed=None, run_options=None):
            raise RuntimeError("Exiting due to terminate flag being set to true")

    model = ONNXInferenceBase.__new__(ONNXInferenceBase)
    model.model_path = tmp_path / "det.onnx"
    model.session = FailingSession()
    model.output_names = ["out"]

    with pytest.raises(ONNXRuntimeError, match="det.onnx") as excinfo:
        model.run({"x": np.zeros((1, 3, 32, 32), dtype=np.float32)})
    assert isinstance(excinfo.value.__cause__, RuntimeError)


def test_recognizer_config_ignores_blank_by_default():
    first, second = RecognizerConfig(), RecognizerConfig()
    assert first.ignored_tokens == [0]
    first.ignored_tokens.append(5)
    assert second.ignored_tokens == [0]
    assert RecognizerConfig(ignored_tokens=[0, 3]).ignored_tokens == [0, 3]
