from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import torch

from ..backend import Backend
from ..errors import RecordError
from ..ids import ParamId
from ..record.base import ParamRecord
from ..tensor import TensorKind, tensor_kind

if TYPE_CHECKING:
    from .base import ModuleMapper, ModuleVisitor


@dataclass(frozen=True, eq=False)
class Param:
    """A learnable parameter: a stable :class:`ParamId` and its tensor.

    Params are values.  Every operation returns a new ``Param`` carrying the
    same id.
    """

    id: ParamId
    tensor: torch.Tensor

    @classmethod
    def initialized(cls, tensor: torch.Tensor, requires_grad: bool = True) -> Param:
        """Mint a new id for *tensor*.  Only float tensors can require grad."""
        if tensor_kind(tensor) is TensorKind.FLOAT:
            tensor = tensor.detach().requires_grad_(requires_grad)
        return cls(ParamId.new(), tensor)

    @property
    def kind(self) -> TensorKind:
        return tensor_kind(self.tensor)

    @property
    def shape(self) -> torch.Size:
        return self.tensor.shape

    @property
    def device(self) -> torch.device:
        return self.tensor.device

    @property
    def requires_grad(self) -> bool:
        return self.tensor.requires_grad

    def collect_devices(self, devices: list[torch.device]) -> list[torch.device]:
        if self.device not in devices:
            devices.append(self.device)
        return devices

    def fork(self, device: torch.device) -> Param:
        """Copy onto *device* as a fresh autograd leaf."""
        tensor = self.tensor.detach().to(device)
        if self.requires_grad:
            tensor.requires_grad_(True)
        return Param(self.id, tensor)

    def to_device(self, device: torch.device) -> Param:
        return Param(self.id, self.tensor.to(device))

    def visit(self, visitor: ModuleVisitor) -> None:
        kind = self.kind
        if kind is TensorKind.FLOAT:
            visitor.visit_float(self.id, self.tensor)
        elif kind is TensorKind.INT:
            visitor.visit_int(self.id, self.tensor)
        else:
            visitor.visit_bool(self.id, self.tensor)

    def map(self, mapper: ModuleMapper) -> Param:
        kind = self.kind
        if kind is TensorKind.FLOAT:
            tensor = mapper.map_float(self.id, self.tensor)
            # Keep params optimisable: a mapped tensor with history becomes a new leaf.
            if tensor.requires_grad and not tensor.is_leaf:
                tensor = tensor.detach().requires_grad_(True)
        elif kind is TensorKind.INT:
            tensor = mapper.map_int(self.id, self.tensor)
        else:
            tensor = mapper.map_bool(self.id, self.tensor)
        return Param(self.id, tensor)

    def into_record(self) -> ParamRecord:
        return ParamRecord(self.id, self.tensor.detach())

    def load_record(self, record: ParamRecord) -> Param:
        if not isinstance(record, ParamRecord):
            raise RecordError(f"Param {self.id} expects a ParamRecord, got {type(record).__name__}")
        if record.tensor.shape != self.shape:
            raise RecordError(
                f"Param {self.id}: record shape {tuple(record.tensor.shape)} "
                f"does not match parameter shape {tuple(self.shape)}"
            )
        tensor = record.tensor.detach().to(device=self.device, dtype=self.tensor.dtype)
        if self.requires_grad:
            tensor.requires_grad_(True)
        return Param(record.id, tensor)

    def record_from_item(self, item: Any, device: torch.device, backend: Backend) -> ParamRecord:
        return ParamRecord.from_item(item, device, backend)

    def __repr__(self) -> str:
        return f"Param(id={self.id}, shape={tuple(self.shape)}, dtype={self.tensor.dtype})"
