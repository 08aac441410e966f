"""Precision settings for persisted records.

The element types of a persisted item are chosen by the settings passed to
the recorder, independently of the backend a module runs on.
"""

from __future__ import annotations

from dataclasses import dataclass

import torch


@dataclass(frozen=True)
class PrecisionSettings:
    name: str
    float_dtype: torch.dtype
    int_dtype: torch.dtype

    def __post_init__(self) -> None:
        if not self.float_dtype.is_floating_point:
            raise ValueError(f"float_dtype must be floating point, got {self.float_dtype}")
        if self.int_dtype.is_floating_point or self.int_dtype == torch.bool:
            raise ValueError(f"int_dtype must be an integer dtype, got {self.int_dtype}")


FULL_PRECISION = PrecisionSettings("full", torch.float32, torch.int32)
HALF_PRECISION = PrecisionSettings("half", torch.float16, torch.int16)
DOUBLE_PRECISION = PrecisionSettings("double", torch.float64, torch.int64)

SETTINGS = {s.name: s for s in (FULL_PRECISION, HALF_PRECISION, DOUBLE_PRECISION)}


def get_settings(name: str) -> PrecisionSettings:
    if name not in SETTINGS:
        raise ValueError(f"Unknown precision settings '{name}'. Available: {list(SETTINGS.keys())}")
    return SETTINGS[name]
