"""Built-in traversals used by :class:`~fpbridge.module.base.Module`."""

from __future__ import annotations

import torch

from ..ids import ParamId
from .base import ModuleMapper, ModuleVisitor


class ParamCounter(ModuleVisitor):
    """Count scalar elements across all parameters."""

    def __init__(self) -> None:
        self.total = 0

    def visit_float(self, id: ParamId, tensor: torch.Tensor) -> None:
        self.total += tensor.numel()

    def visit_int(self, id: ParamId, tensor: torch.Tensor) -> None:
        self.total += tensor.numel()

    def visit_bool(self, id: ParamId, tensor: torch.Tensor) -> None:
        self.total += tensor.numel()


class ParamIdCollector(ModuleVisitor):
    """Collect parameter ids in traversal order."""

    def __init__(self) -> None:
        self.ids: list[ParamId] = []

    def visit_float(self, id: ParamId, tensor: torch.Tensor) -> None:
        self.ids.append(id)

    def visit_int(self, id: ParamId, tensor: torch.Tensor) -> None:
        self.ids.append(id)

    def visit_bool(self, id: ParamId, tensor: torch.Tensor) -> None:
        self.ids.append(id)


class NoGradMapper(ModuleMapper):
    def map_float(self, id: ParamId, tensor: torch.Tensor) -> torch.Tensor:
        return tensor.detach()
