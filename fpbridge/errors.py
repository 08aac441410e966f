"""Exception types raised by fpbridge.

Every error derives from :class:`FPBridgeError` and from the builtin
exception closest in meaning, so callers can catch either.
"""

from __future__ import annotations


class FPBridgeError(Exception):
    """Base class for all fpbridge errors."""


class UnsupportedParamKindError(FPBridgeError, TypeError):
    """A traversal or conversion met an integer or boolean tensor.

    Precision bridging is only defined for float tensors.  Modules holding
    integer or boolean parameters cannot be wrapped in a
    :class:`~fpbridge.module.adaptor.FullPrecisionAdaptor`.
    """

    def __init__(self, message: str, param_ids: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.param_ids = param_ids


class BackendMismatchError(FPBridgeError, ValueError):
    """A module or bridge was combined with the wrong backend."""


class BridgeNotFoundError(FPBridgeError, LookupError):
    """No full-precision bridge is registered for a backend."""


class PrecisionConversionError(FPBridgeError, ArithmeticError):
    """A value cannot be represented in the target precision."""


class RecordError(FPBridgeError, ValueError):
    """A record or persisted item does not match the module loading it."""
