"""Tests for PrecisionConfig YAML loading and factory helpers."""

from __future__ import annotations

from pathlib import Path

import pytest
import torch

from fpbridge import (
    HALF_PRECISION,
    FullPrecisionAdaptor,
    JsonRecorder,
    ModuleMapper,
    ParamId,
    PrecisionConfig,
    PrecisionConversionError,
    get_backend,
)
from fpbridge.nn import RMSNorm


class TestPrecisionConfig:
    def test_defaults(self) -> None:
        config = PrecisionConfig()
        assert config.get_backend() == get_backend("cpu-f16")
        assert config.get_full_precision_backend() == get_backend("cpu")

    def test_yaml_round_trip(self, tmp_path: Path) -> None:
        config = PrecisionConfig(backend="cpu-bf16", record_precision="half", recorder="json", check_overflow=True)
        path = tmp_path / "precision.yaml"
        config.to_yaml(path)
        assert PrecisionConfig.from_yaml(path) == config

    def test_empty_yaml_uses_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert PrecisionConfig.from_yaml(path) == PrecisionConfig()

    @pytest.mark.parametrize(
        "kwargs",
        [{"backend": "tpu"}, {"record_precision": "quarter"}, {"recorder": "msgpack"}],
    )
    def test_rejects_unknown_names(self, kwargs: dict) -> None:
        with pytest.raises(ValueError, match="Unknown"):
            PrecisionConfig(**kwargs)

    def test_get_recorder(self) -> None:
        recorder = PrecisionConfig(record_precision="half", recorder="json").get_recorder()
        assert isinstance(recorder, JsonRecorder)
        assert recorder.settings == HALF_PRECISION

    def test_wrap(self) -> None:
        config = PrecisionConfig(check_overflow=True)
        adaptor = config.wrap(RMSNorm(4, backend=config.get_full_precision_backend()))
        assert isinstance(adaptor, FullPrecisionAdaptor)
        assert adaptor.bridge.check_overflow
        assert adaptor.devices() == [torch.device("cpu")]

    def test_wrap_overflow(self) -> None:
        class Boost(ModuleMapper):
            def map_float(self, id: ParamId, tensor: torch.Tensor) -> torch.Tensor:
                return tensor * 1e6

        config = PrecisionConfig(check_overflow=True)
        norm = RMSNorm(4, backend=config.get_full_precision_backend()).map(Boost())
        adaptor = config.wrap(norm)
        with pytest.raises(PrecisionConversionError):
            adaptor(torch.ones(1, 4, dtype=torch.float16))
