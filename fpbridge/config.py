from dataclasses import asdict, dataclass
from pathlib import Path

import yaml

from .backend import BACKENDS, Backend, PrecisionBridge, full_precision_backend, get_backend
from .module import FullPrecisionAdaptor, Module
from .record import FileRecorder, PrecisionSettings, get_recorder, get_settings
from .record.recorder import RECORDERS
from .record.settings import SETTINGS


@dataclass
class PrecisionConfig:
    """Mixed-precision setup for a host network.

    Loaded from YAML like::

        backend: cpu-f16
        record_precision: half
        recorder: checkpoint
        check_overflow: true
    """

    backend: str = "cpu-f16"           # host backend preset
    record_precision: str = "full"     # "full", "half" or "double"
    recorder: str = "checkpoint"       # "checkpoint" or "json"
    check_overflow: bool = False       # raise on narrowing overflow instead of saturating to inf

    def __post_init__(self) -> None:
        if self.backend not in BACKENDS:
            raise ValueError(f"Unknown backend '{self.backend}'. Available: {list(BACKENDS.keys())}")
        if self.record_precision not in SETTINGS:
            raise ValueError(
                f"Unknown record_precision '{self.record_precision}'. "
                f"Available: {list(SETTINGS.keys())}"
            )
        if self.recorder not in RECORDERS:
            raise ValueError(f"Unknown recorder '{self.recorder}'. Available: {list(RECORDERS.keys())}")

    @classmethod
    def from_yaml(cls, path: str | Path) -> "PrecisionConfig":
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        return cls(**data)

    def to_yaml(self, path: str | Path) -> None:
        with open(path, "w") as f:
            yaml.dump(asdict(self), f, default_flow_style=False)

    def get_backend(self) -> Backend:
        return get_backend(self.backend)

    def get_full_precision_backend(self) -> Backend:
        return full_precision_backend(self.get_backend())

    def get_bridge(self) -> PrecisionBridge:
        backend = self.get_backend()
        return PrecisionBridge(backend, full_precision_backend(backend), check_overflow=self.check_overflow)

    def get_settings(self) -> PrecisionSettings:
        return get_settings(self.record_precision)

    def get_recorder(self) -> FileRecorder:
        return get_recorder(self.recorder, self.get_settings())

    def wrap(self, inner: Module) -> FullPrecisionAdaptor:
        """Wrap a full-precision module for this config's host backend."""
        return FullPrecisionAdaptor(inner, self.get_backend(), bridge=self.get_bridge())
