"""ONNX Runtime adapter exposing the awaitable engine contract."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

import onnxruntime as ort
from loguru import logger

from localsight.pipeline.errors import EngineUnavailable
from localsight.yolo.core.preprocess import infer_input_size


if TYPE_CHECKING:
    import numpy as np


class InferenceEngine(Protocol):
    """Opaque inference capability used by the detection pipeline."""

    @property
    def ready(self) -> bool:
        """Return True once the engine can accept inputs."""
        ...

    @property
    def input_name(self) -> str:
        """Name of the model's image input."""
        ...

    async def run(self, inputs: dict[str, np.ndarray]) -> dict[str, np.ndarray]:
        """Run one inference and return outputs by name."""
        ...


class OnnxEngine:
    """Lazy-loaded ONNX Runtime session."""

    def __init__(self, model_path: str, *, gpu: int = 0) -> None:
        self.model_path = model_path
        self.gpu = gpu
        self._session: ort.InferenceSession | None = None
        self._input_name = ""
        self._output_names: list[str] = []
        self.input_size = 640
        self.provider = ""

    @property
    def ready(self) -> bool:
        return self._session is not None

    @property
    def input_name(self) -> str:
        return self._input_name

    @property
    def output_names(self) -> list[str]:
        return list(self._output_names)

    def load(self) -> None:
        """Create the session, preferring CUDA and falling back to CPU."""
        providers = [
            (
                "CUDAExecutionProvider",
                {"device_id": self.gpu, "arena_extend_strategy": "kNextPowerOfTwo"},
            ),
            "CPUExecutionProvider",
        ]
        available = set(ort.get_available_providers())
        providers = [
            p for p in providers if (p[0] if isinstance(p, tuple) else p) in available
        ] or ["CPUExecutionProvider"]

        logger.info("Loading model: {}", self.model_path)
        session = ort.InferenceSession(self.model_path, providers=providers)

        model_input = session.get_inputs()[0]
        self._input_name = model_input.name
        self._output_names = [out.name for out in session.get_outputs()]
        self.input_size = infer_input_size(model_input.shape)
        self.provider = session.get_providers()[0]
        self._session = session

        logger.success("Model loaded using: {}", self.provider)
        logger.debug(
            "Model input: {} {}, outputs: {}",
            self._input_name,
            model_input.shape,
            self._output_names,
        )

    async def run(self, inputs: dict[str, np.ndarray]) -> dict[str, np.ndarray]:
        """Run the session off the event loop and map outputs by name."""
        session = self._session
        if session is None:
            message = "Inference engine is not loaded yet"
            raise EngineUnavailable(message)

        loop = asyncio.get_running_loop()
        outputs = await loop.run_in_executor(
            None, session.run, self._output_names, inputs
        )
        return dict(zip(self._output_names, outputs, strict=True))
