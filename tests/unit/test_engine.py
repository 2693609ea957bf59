"""Unit tests for the ONNX Runtime engine adapter."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import numpy as np
import pytest

from localsight.pipeline.errors import EngineUnavailable
from localsight.yolo.core.engine import OnnxEngine


def _fake_session(shape=(1, 3, 320, 320)) -> MagicMock:
    session = MagicMock()
    session.get_inputs.return_value = [SimpleNamespace(name="images", shape=list(shape))]
    session.get_outputs.return_value = [SimpleNamespace(name="output0")]
    session.get_providers.return_value = ["CPUExecutionProvider"]
    session.run.return_value = [np.ones((1, 84, 10), dtype=np.float32)]
    return session


class TestOnnxEngine:
    """Tests for OnnxEngine."""

    def test_not_ready_before_load(self) -> None:
        engine = OnnxEngine("model.onnx")

        assert not engine.ready
        with pytest.raises(EngineUnavailable):
            asyncio.run(engine.run({"images": np.zeros((1, 3, 8, 8), np.float32)}))

    def test_load_reads_model_metadata(self) -> None:
        session = _fake_session()

        with patch("localsight.yolo.core.engine.ort") as ort:
            ort.get_available_providers.return_value = ["CPUExecutionProvider"]
            ort.InferenceSession.return_value = session
            engine = OnnxEngine("model.onnx")
            engine.load()

        assert engine.ready
        assert engine.input_name == "images"
        assert engine.output_names == ["output0"]
        assert engine.input_size == 320
        assert engine.provider == "CPUExecutionProvider"
        _, kwargs = ort.InferenceSession.call_args
        assert kwargs["providers"] == ["CPUExecutionProvider"]

    def test_prefers_cuda_when_available(self) -> None:
        with patch("localsight.yolo.core.engine.ort") as ort:
            ort.get_available_providers.return_value = [
                "CUDAExecutionProvider",
                "CPUExecutionProvider",
            ]
            ort.InferenceSession.return_value = _fake_session()
            OnnxEngine("model.onnx", gpu=1).load()

        _, kwargs = ort.InferenceSession.call_args
        first = kwargs["providers"][0]
        assert first[0] == "CUDAExecutionProvider"
        assert first[1]["device_id"] == 1

    def test_dynamic_input_defaults_to_640(self) -> None:
        with patch("localsight.yolo.core.engine.ort") as ort:
            ort.get_available_providers.return_value = ["CPUExecutionProvider"]
            ort.InferenceSession.return_value = _fake_session((1, 3, "h", "w"))
            engine = OnnxEngine("model.onnx")
            engine.load()

        assert engine.input_size == 640

    def test_run_maps_outputs_by_name(self) -> None:
        session = _fake_session()
        with patch("localsight.yolo.core.engine.ort") as ort:
            ort.get_available_providers.return_value = ["CPUExecutionProvider"]
            ort.InferenceSession.return_value = session
            engine = OnnxEngine("model.onnx")
            engine.load()

        inputs = {"images": np.zeros((1, 3, 320, 320), np.float32)}
        outputs = asyncio.run(engine.run(inputs))

        assert list(outputs) == ["output0"]
        assert outputs["output0"].shape == (1, 84, 10)
        session.run.assert_called_once_with(["output0"], inputs)
