"""Full-precision adaptor: use a full-precision module inside a lower-precision host.

A module written once against a backend's full-precision counterpart (for
example ``cpu`` / float32) is wrapped so it behaves, to every traversal, as
a module of the host backend (for example ``cpu-f16``)::

    norm = RMSNorm(512, backend=get_backend("cpu"))
    host = Sequential(
        Linear(512, 512, backend=get_backend("cpu-f16")),
        FullPrecisionAdaptor(norm, get_backend("cpu-f16")),
    )

Every float tensor crossing the boundary goes through the backend bridge:
visitors and mappers of the host only ever see host-precision tensors,
while the wrapped module keeps storing full-precision values.  Parameter
ids, shapes and devices are never changed by the adaptor.

Only float parameters can be bridged.  Wrapping a module that holds integer
or boolean parameters raises :class:`UnsupportedParamKindError`.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Optional

import torch

from ..backend import Backend, BackendBridge, full_precision_bridge
from ..errors import BackendMismatchError, RecordError, UnsupportedParamKindError
from ..ids import ParamId
from ..record.adaptor import RecordAdaptor
from ..record.base import Record
from ..tensor import TensorKind
from .base import Module, ModuleMapper, ModuleVisitor

logger = logging.getLogger("fpbridge.adaptor")


class FullPrecisionAdaptor(Module):
    """Present *inner*, built for ``bridge.target``, as a module of *backend*.

    Args:
        inner: Module built for the full-precision counterpart of *backend*.
        backend: Host backend the adaptor is used in.
        bridge: Conversion between *backend* and its counterpart.  Defaults
            to the bridge registered for *backend*.

    Raises:
        BridgeNotFoundError: No bridge is registered for *backend*.
        BackendMismatchError: The bridge does not start at *backend* or
            *inner* was not built for the bridge target.
        UnsupportedParamKindError: *inner* holds integer or boolean parameters.
    """

    def __init__(self, inner: Module, backend: Backend, bridge: Optional[BackendBridge] = None):
        bridge = bridge if bridge is not None else full_precision_bridge(backend)
        if bridge.source != backend:
            raise BackendMismatchError(
                f"Bridge {bridge!r} does not convert from host backend '{backend}'"
            )
        if inner.backend != bridge.target:
            raise BackendMismatchError(
                f"{type(inner).__name__} is built for '{inner.backend}', but the "
                f"full-precision counterpart of '{backend}' is '{bridge.target}'"
            )
        _check_float_only(inner)

        super().__init__(backend)
        self.inner = inner
        self.bridge = bridge
        logger.debug(
            "Wrapped %s (%s) for host backend %s",
            type(inner).__name__,
            bridge.target,
            backend,
        )

    def _rewrap(self, inner: Module) -> FullPrecisionAdaptor:
        new = copy.copy(self)
        new.inner = inner
        return new

    def into_inner(self) -> Module:
        return self.inner

    def forward(self, *args: Any, **kwargs: Any) -> Any:
        """Run the wrapped module in full precision on host-precision inputs."""
        args = _convert_floats(args, self.bridge.into_target)
        kwargs = _convert_floats(kwargs, self.bridge.into_target)
        return _convert_floats(self.inner(*args, **kwargs), self.bridge.from_target)

    # ── Module protocol ─────────────────────────────────────────────

    def collect_devices(self, devices: list[torch.device]) -> list[torch.device]:
        return self.inner.collect_devices(devices)

    def fork(self, device: torch.device) -> FullPrecisionAdaptor:
        return self._rewrap(self.inner.fork(device))

    def to_device(self, device: torch.device) -> FullPrecisionAdaptor:
        return self._rewrap(self.inner.to_device(device))

    def visit(self, visitor: ModuleVisitor) -> None:
        self.inner.visit(_VisitorAdaptor(visitor, self.bridge))

    def map(self, mapper: ModuleMapper) -> FullPrecisionAdaptor:
        return self._rewrap(self.inner.map(_MapperAdaptor(mapper, self.bridge)))

    def num_params(self) -> int:
        return self.inner.num_params()

    def into_record(self) -> RecordAdaptor:
        return RecordAdaptor(self.inner.into_record(), self.backend)

    def load_record(self, record: Record) -> FullPrecisionAdaptor:
        if not isinstance(record, RecordAdaptor):
            raise RecordError(
                f"FullPrecisionAdaptor expects a RecordAdaptor, got {type(record).__name__}"
            )
        if record.backend != self.backend:
            raise RecordError(
                f"Record was built for host backend '{record.backend}', "
                f"adaptor runs on '{self.backend}'"
            )
        return self._rewrap(self.inner.load_record(record.inner))

    def record_from_item(self, item: Any, device: torch.device) -> RecordAdaptor:
        return RecordAdaptor.from_item(item, device, self.backend, self.inner)

    def __repr__(self) -> str:
        return f"FullPrecisionAdaptor({self.inner!r}, backend={self.backend})"


class _VisitorAdaptor(ModuleVisitor):
    """Visitor of the full-precision backend forwarding to a host visitor."""

    def __init__(self, inner: ModuleVisitor, bridge: BackendBridge):
        self.inner = inner
        self.bridge = bridge

    def visit_float(self, id: ParamId, tensor: torch.Tensor) -> None:
        self.inner.visit_float(id, _host_leaf(tensor, self.bridge))

    def visit_int(self, id: ParamId, tensor: torch.Tensor) -> None:
        raise _unsupported(id, TensorKind.INT)

    def visit_bool(self, id: ParamId, tensor: torch.Tensor) -> None:
        raise _unsupported(id, TensorKind.BOOL)


class _MapperAdaptor(ModuleMapper):
    """Mapper of the full-precision backend forwarding to a host mapper.

    Float tensors are narrowed before the host mapper sees them and the
    result is widened back before it is stored.
    """

    def __init__(self, inner: ModuleMapper, bridge: BackendBridge):
        self.inner = inner
        self.bridge = bridge

    def map_float(self, id: ParamId, tensor: torch.Tensor) -> torch.Tensor:
        mapped = self.inner.map_float(id, _host_leaf(tensor, self.bridge))
        return self.bridge.into_target(mapped)

    def map_int(self, id: ParamId, tensor: torch.Tensor) -> torch.Tensor:
        raise _unsupported(id, TensorKind.INT)

    def map_bool(self, id: ParamId, tensor: torch.Tensor) -> torch.Tensor:
        raise _unsupported(id, TensorKind.BOOL)


class _ParamKindCheck(ModuleVisitor):
    def __init__(self) -> None:
        self.rejected: list[tuple[ParamId, TensorKind]] = []

    def visit_int(self, id: ParamId, tensor: torch.Tensor) -> None:
        self.rejected.append((id, TensorKind.INT))

    def visit_bool(self, id: ParamId, tensor: torch.Tensor) -> None:
        self.rejected.append((id, TensorKind.BOOL))


def _check_float_only(module: Module) -> None:
    check = _ParamKindCheck()
    module.visit(check)
    if check.rejected:
        listed = ", ".join(f"{pid} ({kind.value})" for pid, kind in check.rejected)
        raise UnsupportedParamKindError(
            f"{type(module).__name__} holds non-float parameters that cannot be "
            f"precision-adapted: {listed}",
            param_ids=tuple(str(pid) for pid, _ in check.rejected),
        )


def _host_leaf(tensor: torch.Tensor, bridge: BackendBridge) -> torch.Tensor:
    """Narrow a full-precision parameter into a host-precision autograd leaf.

    The host sees the same leaf idiom as with a native parameter: gradient
    flag preserved and the gradient, if any, narrowed alongside.
    """
    narrowed = bridge.from_target(tensor.detach()).requires_grad_(tensor.requires_grad)
    if tensor.grad is not None:
        narrowed.grad = bridge.from_target(tensor.grad)
    return narrowed


def _unsupported(id: ParamId, kind: TensorKind) -> UnsupportedParamKindError:
    return UnsupportedParamKindError(
        f"Parameter {id} is a {kind.value} tensor; only float parameters can "
        f"cross a full-precision adaptor",
        param_ids=(str(id),),
    )


def _convert_floats(value: Any, fn: Callable[[torch.Tensor], torch.Tensor]) -> Any:
    """Apply *fn* to every float tensor in a nest of tuples, lists and dicts."""
    if isinstance(value, torch.Tensor):
        return fn(value) if value.is_floating_point() else value
    if isinstance(value, tuple) and hasattr(value, "_fields"):
        return type(value)(*(_convert_floats(v, fn) for v in value))
    if isinstance(value, (tuple, list)):
        return type(value)(_convert_floats(v, fn) for v in value)
    if isinstance(value, dict):
        return {k: _convert_floats(v, fn) for k, v in value.items()}
    return value
