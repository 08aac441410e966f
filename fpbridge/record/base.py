"""Records: the serialization-time projection of a module's parameters.

A record is converted into an *item* for a chosen
:class:`~fpbridge.record.settings.PrecisionSettings`.  Items are plain data
(dicts, lists, strings and numbers) so any recorder can persist them::

    {"id": "9f0c...", "param": {"value": [...], "shape": [3, 4], "dtype": "f32"}}
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

import torch

from ..backend import Backend
from ..errors import RecordError
from ..ids import ParamId
from ..tensor import TensorKind, dtype_from_name, dtype_name, tensor_kind
from .settings import PrecisionSettings


class Record(ABC):
    @abstractmethod
    def into_item(self, settings: PrecisionSettings) -> Any:
        """Convert into a persistable item using *settings* element types."""


@dataclass(eq=False)
class ParamRecord(Record):
    id: ParamId
    tensor: torch.Tensor

    def into_item(self, settings: PrecisionSettings) -> dict[str, Any]:
        dtype = _item_dtype(tensor_kind(self.tensor), settings)
        data = self.tensor.detach().to(device="cpu", dtype=dtype)
        return {
            "id": str(self.id),
            "param": {
                "value": data.reshape(-1).tolist(),
                "shape": list(data.shape),
                "dtype": dtype_name(dtype),
            },
        }

    @classmethod
    def from_item(
        cls,
        item: dict[str, Any],
        device: torch.device,
        backend: Backend,
    ) -> ParamRecord:
        """Rebuild a record on *device* in *backend*'s native dtypes."""
        try:
            param_id = ParamId.parse(item["id"])
            data = item["param"]
            value, shape, stored = data["value"], list(data["shape"]), data["dtype"]
            if not isinstance(value, list):
                raise TypeError(f"value must be a list, got {type(value).__name__}")
            filled = math.prod(shape) == len(value)
        except (KeyError, TypeError, ValueError) as e:
            raise RecordError(f"Malformed parameter item: {e!r}") from e

        stored_dtype = dtype_from_name(stored)
        if not filled:
            raise RecordError(
                f"Parameter {param_id}: {len(value)} values do not fill shape {shape}"
            )
        tensor = torch.tensor(value, dtype=stored_dtype).reshape(shape)
        native = _native_dtype(tensor_kind(tensor), backend)
        return cls(param_id, tensor.to(device=device, dtype=native))


@dataclass(eq=False)
class ModuleRecord(Record):
    """Record of a module: one sub-record per parameter or child module."""

    fields: dict[str, Record] = field(default_factory=dict)

    def __getitem__(self, name: str) -> Record:
        try:
            return self.fields[name]
        except KeyError:
            raise RecordError(
                f"Record has no field '{name}'. Available: {list(self.fields.keys())}"
            ) from None

    def into_item(self, settings: PrecisionSettings) -> dict[str, Any]:
        return {name: record.into_item(settings) for name, record in self.fields.items()}


def _item_dtype(kind: TensorKind, settings: PrecisionSettings) -> torch.dtype:
    if kind is TensorKind.FLOAT:
        return settings.float_dtype
    if kind is TensorKind.INT:
        return settings.int_dtype
    return torch.bool


def _native_dtype(kind: TensorKind, backend: Backend) -> torch.dtype:
    if kind is TensorKind.FLOAT:
        return backend.float_dtype
    if kind is TensorKind.INT:
        return backend.int_dtype
    return torch.bool
