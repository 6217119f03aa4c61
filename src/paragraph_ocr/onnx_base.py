"""Base class for ONNX Runtime inference with GPU/TensorRT support."""

import logging
from pathlib import Path
from typing import List, Optional, Union

import onnxruntime
from onnxruntime import GraphOptimizationLevel, SessionOptions

logger = logging.getLogger(__name__)


class ONNXRuntimeError(Exception):
    """Exception raised when ONNX Runtime fails during inference."""
    pass


class ONNXInferenceBase:
    """Base class for ONNX inference with hardware acceleration."""

    def __init__(
        self,
        model_path: Union[str, Path],
        use_gpu: bool = False,
        use_tensorrt: bool = False,
        intra_op_num_threads: int = 0,
        inter_op_num_threads: int = 0,
        log_severity_level: int = 2,
    ):
        """Initialize ONNX Runtime session.

        Args:
            model_path: Path to ONNX model file
            use_gpu: Enable CUDA GPU acceleration
            use_tensorrt: Enable TensorRT acceleration (requires TensorRT)
            intra_op_num_threads: Threads within an operator (0 = default)
            inter_op_num_threads: Threads across operators (0 = default)
            log_severity_level: onnxruntime log level (0 verbose .. 4 fatal)
        """
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(f"Model not found: {model_path}")

        sess_opt = SessionOptions()
        sess_opt.graph_optimization_level = GraphOptimizationLevel.ORT_ENABLE_ALL
        sess_opt.enable_cpu_mem_arena = True
        sess_opt.enable_mem_pattern = True
        sess_opt.execution_mode = onnxruntime.ExecutionMode.ORT_SEQUENTIAL
        sess_opt.log_severity_level = log_severity_level
        sess_opt.intra_op_num_threads = intra_op_num_threads
        sess_opt.inter_op_num_threads = inter_op_num_threads

        # Setup providers (TensorRT > CUDA > CPU)
        providers = self._get_providers(use_gpu, use_tensorrt)
        logger.info("Loading %s with providers %s", self.model_path.name, providers)

        self.session = onnxruntime.InferenceSession(
            str(self.model_path),
            sess_options=sess_opt,
            providers=providers
        )

        # Cache input/output names
        self.input_names = [node.name for node in self.session.get_inputs()]
        self.output_names = [node.name for node in self.session.get_outputs()]

    def _get_providers(self, use_gpu: bool, use_tensorrt: bool) -> List:
        """Get execution providers based on hardware availability.

        Priority: TensorRT > CUDA > CPU
        """
        available_providers = onnxruntime.get_available_providers()
        providers = []

        if use_tensorrt and "TensorrtExecutionProvider" in available_providers:
            providers.append(('TensorrtExecutionProvider', {}))

        if use_gpu and "CUDAExecutionProvider" in available_providers:
            providers.append((
                'CUDAExecutionProvider',
                {"cudnn_conv_algo_search": "DEFAULT"}
            ))

        # CPU (always available as fallback)
        providers.append('CPUExecutionProvider')

        return providers

    def run(
        self,
        input_data: dict,
        run_options: Optional[onnxruntime.RunOptions] = None,
    ) -> List:
        """Run inference on input data.

        Args:
            input_data: Dictionary mapping input names to numpy arrays
            run_options: Per-call options; setting ``terminate`` on it from
                another thread cancels the call

        Returns:
            List of output arrays
        """
        try:
            return self.session.run(
                self.output_names, input_feed=input_data, run_options=run_options
            )
        except Exception as e:
            raise ONNXRuntimeError(f"Inference failed for {self.model_path.name}: {e}") from e

    def get_input_feed(self, image_array):
        """Map the model's single image input to ``image_array``."""
        return {self.input_names[0]: image_array}
