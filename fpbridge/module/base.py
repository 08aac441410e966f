"""Module abstraction and the parameter traversal protocols.

A module tree is walked depth first, in attribute order.  The fields of a
module are its instance attributes holding a :class:`Param`, a
:class:`Module` or a non-empty list of modules; everything else (the
backend, hyperparameters) is configuration and is carried over unchanged.

Operations that change parameters (``fork``, ``to_device``, ``map``,
``load_record``) never mutate the module they are called on.  They return a
new module built from a shallow copy, so a module is only ever rewritten by
the single caller holding it.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Iterator, Optional, Union

import torch

from ..backend import Backend
from ..errors import RecordError
from ..ids import ParamId
from ..record.base import ModuleRecord, Record
from .param import Param

if TYPE_CHECKING:
    from ..record.recorder import FileRecorder

Field = Union[Param, "Module", list]


class ModuleVisitor:
    """Read-only traversal over a module's parameters.

    One method per tensor kind.  The defaults ignore the parameter, so
    subclasses override only the kinds they care about.
    """

    def visit_float(self, id: ParamId, tensor: torch.Tensor) -> None:
        pass

    def visit_int(self, id: ParamId, tensor: torch.Tensor) -> None:
        pass

    def visit_bool(self, id: ParamId, tensor: torch.Tensor) -> None:
        pass


class ModuleMapper:
    """Rewriting traversal over a module's parameters.

    Each method returns the new tensor for the parameter.  The defaults
    return the tensor unchanged.
    """

    def map_float(self, id: ParamId, tensor: torch.Tensor) -> torch.Tensor:
        return tensor

    def map_int(self, id: ParamId, tensor: torch.Tensor) -> torch.Tensor:
        return tensor

    def map_bool(self, id: ParamId, tensor: torch.Tensor) -> torch.Tensor:
        return tensor


class Module:
    """Base class of every network component.

    Subclasses declare parameters and child modules as plain attributes in
    ``__init__`` and implement :meth:`forward`.
    """

    def __init__(self, backend: Backend):
        self.backend = backend

    def forward(self, *args: Any, **kwargs: Any) -> Any:
        raise NotImplementedError(f"{type(self).__name__} does not implement forward()")

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self.forward(*args, **kwargs)

    # ── Structure ───────────────────────────────────────────────────

    def named_fields(self) -> Iterator[tuple[str, Field]]:
        for name, value in vars(self).items():
            if isinstance(value, (Param, Module)):
                yield name, value
            elif isinstance(value, list) and value and all(isinstance(v, Module) for v in value):
                yield name, value

    def _rebuild(self, fn: Callable[[Any], Any]) -> Module:
        new = copy.copy(self)
        for name, value in self.named_fields():
            if isinstance(value, list):
                setattr(new, name, [fn(child) for child in value])
            else:
                setattr(new, name, fn(value))
        return new

    # ── Devices ─────────────────────────────────────────────────────

    def collect_devices(self, devices: list[torch.device]) -> list[torch.device]:
        """Append the devices used by this module that are not yet in *devices*."""
        for _, value in self.named_fields():
            for item in value if isinstance(value, list) else (value,):
                devices = item.collect_devices(devices)
        return devices

    def devices(self) -> list[torch.device]:
        return self.collect_devices([])

    def fork(self, device: torch.device) -> Module:
        return self._rebuild(lambda field: field.fork(device))

    def to_device(self, device: torch.device) -> Module:
        return self._rebuild(lambda field: field.to_device(device))

    # ── Traversal ───────────────────────────────────────────────────

    def visit(self, visitor: ModuleVisitor) -> None:
        for _, value in self.named_fields():
            for item in value if isinstance(value, list) else (value,):
                item.visit(visitor)

    def map(self, mapper: ModuleMapper) -> Module:
        return self._rebuild(lambda field: field.map(mapper))

    def num_params(self) -> int:
        from .visitors import ParamCounter

        counter = ParamCounter()
        self.visit(counter)
        return counter.total

    def param_ids(self) -> list[ParamId]:
        from .visitors import ParamIdCollector

        collector = ParamIdCollector()
        self.visit(collector)
        return collector.ids

    def no_grad(self) -> Module:
        """Return a copy whose float parameters do not require grad."""
        from .visitors import NoGradMapper

        return self.map(NoGradMapper())

    # ── Records ─────────────────────────────────────────────────────

    def into_record(self) -> Record:
        fields: dict[str, Record] = {}
        for name, value in self.named_fields():
            if isinstance(value, list):
                fields[name] = ModuleRecord({str(i): child.into_record() for i, child in enumerate(value)})
            else:
                fields[name] = value.into_record()
        return ModuleRecord(fields)

    def load_record(self, record: Record) -> Module:
        if not isinstance(record, ModuleRecord):
            raise RecordError(
                f"{type(self).__name__} expects a ModuleRecord, got {type(record).__name__}"
            )
        new = copy.copy(self)
        for name, value in self.named_fields():
            sub = record[name]
            if isinstance(value, list):
                if not isinstance(sub, ModuleRecord):
                    raise RecordError(f"Field '{name}' expects a ModuleRecord, got {type(sub).__name__}")
                setattr(new, name, [child.load_record(sub[str(i)]) for i, child in enumerate(value)])
            else:
                setattr(new, name, value.load_record(sub))
        return new

    def record_from_item(self, item: Any, device: torch.device) -> Record:
        """Rebuild a record of this module's shape from a persisted item."""
        if not isinstance(item, dict):
            raise RecordError(f"{type(self).__name__} expects a dict item, got {type(item).__name__}")
        fields: dict[str, Record] = {}
        for name, value in self.named_fields():
            if name not in item:
                raise RecordError(f"Item for {type(self).__name__} has no field '{name}'")
            sub = item[name]
            if isinstance(value, Param):
                fields[name] = value.record_from_item(sub, device, self.backend)
            elif isinstance(value, list):
                if not isinstance(sub, dict):
                    raise RecordError(f"Field '{name}' expects a dict item, got {type(sub).__name__}")
                fields[name] = ModuleRecord(
                    {
                        str(i): child.record_from_item(_item_entry(sub, str(i)), device)
                        for i, child in enumerate(value)
                    }
                )
            else:
                fields[name] = value.record_from_item(sub, device)
        return ModuleRecord(fields)

    def save_file(self, path: str | Path, recorder: FileRecorder) -> Path:
        return recorder.record(self.into_record(), path)

    def load_file(
        self,
        path: str | Path,
        recorder: FileRecorder,
        device: Optional[torch.device] = None,
    ) -> Module:
        return recorder.load(self, path, device)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(backend={self.backend}, params={self.num_params():,})"


def _item_entry(item: dict[str, Any], key: str) -> Any:
    if key not in item:
        raise RecordError(f"Item has no entry '{key}'")
    return item[key]
