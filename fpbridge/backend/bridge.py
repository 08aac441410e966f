"""Full-precision bridges between backends.

Each backend is associated with a "full precision" counterpart through an
explicit registry rather than through inheritance::

    cpu-f16  --narrow/widen-->  cpu
    cpu-bf16 --narrow/widen-->  cpu
    cpu      --identity----->   cpu

``into_target`` widens a native tensor into the counterpart's precision and
``from_target`` narrows it back.  Only float tensors have a precision to
convert; integer and boolean tensors are rejected with
:class:`~fpbridge.errors.UnsupportedParamKindError`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import torch

from ..errors import BridgeNotFoundError, PrecisionConversionError, UnsupportedParamKindError
from ..tensor import TensorKind, tensor_kind
from .base import BACKENDS, Backend

logger = logging.getLogger("fpbridge.backend")


class BackendBridge(ABC):
    """Bidirectional tensor conversion between a backend and its counterpart."""

    def __init__(self, source: Backend, target: Backend):
        if source.device_type != target.device_type:
            raise ValueError(
                f"Bridge {source} -> {target} crosses device types "
                f"({source.device_type} != {target.device_type})"
            )
        source_info = torch.finfo(source.float_dtype)
        target_info = torch.finfo(target.float_dtype)
        if target_info.max < source_info.max or target_info.eps > source_info.eps:
            raise ValueError(
                f"Bridge target {target} ({target.float_dtype}) is narrower than "
                f"source {source} ({source.float_dtype})"
            )
        self.source = source
        self.target = target

    @property
    def is_identity(self) -> bool:
        return self.source.float_dtype == self.target.float_dtype

    @abstractmethod
    def into_target(self, tensor: torch.Tensor) -> torch.Tensor:
        """Widen a native ``source`` tensor into a ``target`` tensor."""

    @abstractmethod
    def from_target(self, tensor: torch.Tensor) -> torch.Tensor:
        """Narrow a ``target`` tensor into a native ``source`` tensor."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.source} -> {self.target})"


class PrecisionBridge(BackendBridge):
    """Bridge that converts float tensors by casting their dtype.

    Shape, rank and device are preserved.  With ``check_overflow`` the
    narrowing direction raises :class:`PrecisionConversionError` when a
    finite value would become infinite.
    """

    def __init__(self, source: Backend, target: Backend, check_overflow: bool = False):
        super().__init__(source, target)
        self.check_overflow = check_overflow

    def into_target(self, tensor: torch.Tensor) -> torch.Tensor:
        _require_float(tensor)
        return tensor.to(dtype=self.target.float_dtype)

    def from_target(self, tensor: torch.Tensor) -> torch.Tensor:
        _require_float(tensor)
        narrowed = tensor.to(dtype=self.source.float_dtype)
        if self.check_overflow and not self.is_identity:
            overflow = torch.isinf(narrowed) & torch.isfinite(tensor)
            if bool(overflow.any()):
                raise PrecisionConversionError(
                    f"{int(overflow.sum())} value(s) overflow {self.source.float_dtype} "
                    f"when narrowing from {self.target.float_dtype} "
                    f"(max abs {tensor.detach().abs().max().item():.6g})"
                )
        return narrowed


def _require_float(tensor: torch.Tensor) -> None:
    kind = tensor_kind(tensor)
    if kind is not TensorKind.FLOAT:
        raise UnsupportedParamKindError(
            f"Precision bridges only convert float tensors, got a {kind.value} "
            f"tensor ({tensor.dtype})"
        )


_BRIDGES: dict[str, BackendBridge] = {}


def register_bridge(bridge: BackendBridge) -> None:
    """Register *bridge* as the full-precision bridge of ``bridge.source``."""
    _BRIDGES[bridge.source.name] = bridge
    logger.debug("Registered full-precision bridge %r", bridge)


def full_precision_bridge(backend: Backend) -> BackendBridge:
    try:
        bridge = _BRIDGES[backend.name]
    except KeyError:
        raise BridgeNotFoundError(
            f"No full-precision bridge registered for backend '{backend}'. "
            f"Registered: {list(_BRIDGES.keys())}"
        ) from None
    if bridge.source != backend:
        raise BridgeNotFoundError(
            f"Bridge registered under '{backend}' belongs to a different backend "
            f"definition ({bridge.source!r})"
        )
    return bridge


def full_precision_backend(backend: Backend) -> Backend:
    return full_precision_bridge(backend).target


def _register_presets() -> None:
    full = {"cpu": "cpu", "cpu-f64": "cpu-f64", "cuda": "cuda", "mps": "mps"}
    narrow = {
        "cpu-f16": "cpu",
        "cpu-bf16": "cpu",
        "cuda-f16": "cuda",
        "cuda-bf16": "cuda",
        "mps-f16": "mps",
    }
    for source, target in {**full, **narrow}.items():
        register_bridge(PrecisionBridge(BACKENDS[source], BACKENDS[target]))


_register_presets()
