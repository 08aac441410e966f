"""
fpbridge: full-precision adaptors for mixed-precision module trees
==================================================================

Modules are built against a :class:`Backend` (device type + native float
precision).  A module written for a backend's full-precision counterpart can
be reused unmodified inside a lower-precision host network by wrapping it in
a :class:`FullPrecisionAdaptor`::

    from fpbridge import FullPrecisionAdaptor, get_backend
    from fpbridge.nn import RMSNorm

    norm = RMSNorm(512, backend=get_backend("cpu"))             # float32
    wrapped = FullPrecisionAdaptor(norm, get_backend("cpu-f16"))  # host sees float16

Device collection, placement, visitors, mappers and records all treat the
wrapped module exactly like a native host module.
"""

from __future__ import annotations

__version__ = "0.1.0"

from .backend import (
    BACKENDS,
    Backend,
    BackendBridge,
    PrecisionBridge,
    full_precision_backend,
    full_precision_bridge,
    get_backend,
    register_bridge,
)
from .config import PrecisionConfig
from .errors import (
    BackendMismatchError,
    BridgeNotFoundError,
    FPBridgeError,
    PrecisionConversionError,
    RecordError,
    UnsupportedParamKindError,
)
from .ids import ParamId
from .module import FullPrecisionAdaptor, Module, ModuleMapper, ModuleVisitor, Param
from .record import (
    DOUBLE_PRECISION,
    FULL_PRECISION,
    HALF_PRECISION,
    CheckpointRecorder,
    JsonRecorder,
    ModuleRecord,
    ParamRecord,
    PrecisionSettings,
    RecordAdaptor,
)
from .tensor import TensorKind, tensor_kind

__all__ = [
    # Backends
    "BACKENDS",
    "Backend",
    "BackendBridge",
    "PrecisionBridge",
    "full_precision_backend",
    "full_precision_bridge",
    "get_backend",
    "register_bridge",
    # Modules
    "FullPrecisionAdaptor",
    "Module",
    "ModuleMapper",
    "ModuleVisitor",
    "Param",
    "ParamId",
    "TensorKind",
    "tensor_kind",
    # Records
    "CheckpointRecorder",
    "JsonRecorder",
    "ModuleRecord",
    "ParamRecord",
    "PrecisionSettings",
    "RecordAdaptor",
    "DOUBLE_PRECISION",
    "FULL_PRECISION",
    "HALF_PRECISION",
    # Config
    "PrecisionConfig",
    # Errors
    "FPBridgeError",
    "BackendMismatchError",
    "BridgeNotFoundError",
    "PrecisionConversionError",
    "RecordError",
    "UnsupportedParamKindError",
]
