from __future__ import annotations

from dataclasses import dataclass

import torch


@dataclass(frozen=True)
class Backend:
    """An execution context: a device type plus its native numeric precision.

    Modules are built against one backend.  Float parameters of a module are
    stored in ``float_dtype`` and integer parameters in ``int_dtype``.
    """

    name: str
    device_type: str
    float_dtype: torch.dtype
    int_dtype: torch.dtype = torch.int64

    def __post_init__(self) -> None:
        if not self.float_dtype.is_floating_point:
            raise ValueError(
                f"Backend '{self.name}' float_dtype must be a floating point dtype, "
                f"got {self.float_dtype}"
            )
        if self.int_dtype.is_floating_point or self.int_dtype == torch.bool:
            raise ValueError(
                f"Backend '{self.name}' int_dtype must be an integer dtype, "
                f"got {self.int_dtype}"
            )

    @property
    def float_bits(self) -> int:
        return self.float_dtype.itemsize * 8

    def default_device(self) -> torch.device:
        return torch.device(self.device_type)

    def __str__(self) -> str:
        return self.name


# Preset backends
BACKENDS = {
    "cpu": Backend("cpu", "cpu", torch.float32),
    "cpu-f64": Backend("cpu-f64", "cpu", torch.float64),
    "cpu-f16": Backend("cpu-f16", "cpu", torch.float16),
    "cpu-bf16": Backend("cpu-bf16", "cpu", torch.bfloat16),
    "cuda": Backend("cuda", "cuda", torch.float32),
    "cuda-f16": Backend("cuda-f16", "cuda", torch.float16),
    "cuda-bf16": Backend("cuda-bf16", "cuda", torch.bfloat16),
    "mps": Backend("mps", "mps", torch.float32),
    "mps-f16": Backend("mps-f16", "mps", torch.float16),
}


def get_backend(name: str) -> Backend:
    if name not in BACKENDS:
        raise ValueError(f"Unknown backend '{name}'. Available: {list(BACKENDS.keys())}")
    return BACKENDS[name]
