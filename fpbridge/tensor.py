"""Tensor kinds and the dtype names used in persisted items."""

from __future__ import annotations

from enum import Enum

import torch

from .errors import RecordError


class TensorKind(Enum):
    FLOAT = "float"
    INT = "int"
    BOOL = "bool"


def tensor_kind(tensor: torch.Tensor) -> TensorKind:
    """Classify *tensor* by element kind."""
    if tensor.dtype == torch.bool:
        return TensorKind.BOOL
    if tensor.is_complex():
        raise TypeError(f"Complex tensors are not supported (got {tensor.dtype})")
    if tensor.is_floating_point():
        return TensorKind.FLOAT
    return TensorKind.INT


_DTYPE_NAMES = {
    torch.float64: "f64",
    torch.float32: "f32",
    torch.float16: "f16",
    torch.bfloat16: "bf16",
    torch.int64: "i64",
    torch.int32: "i32",
    torch.int16: "i16",
    torch.int8: "i8",
    torch.uint8: "u8",
    torch.bool: "bool",
}
_NAME_DTYPES = {name: dtype for dtype, name in _DTYPE_NAMES.items()}


def dtype_name(dtype: torch.dtype) -> str:
    try:
        return _DTYPE_NAMES[dtype]
    except KeyError:
        raise RecordError(f"No persisted name for dtype {dtype}") from None


def dtype_from_name(name: str) -> torch.dtype:
    try:
        return _NAME_DTYPES[name]
    except KeyError:
        raise RecordError(
            f"Unknown dtype name '{name}'. Available: {list(_NAME_DTYPES.keys())}"
        ) from None
