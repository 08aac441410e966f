from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import torch

from ..backend import Backend
from .base import Record
from .settings import PrecisionSettings

if TYPE_CHECKING:
    from ..module.base import Module


@dataclass(eq=False)
class RecordAdaptor(Record):
    """Record of a wrapped module, presented for the host ``backend``.

    ``inner`` is the wrapped module's own record, built against the
    full-precision counterpart of ``backend``.  The persisted item's element
    types come from the precision settings alone, so the item is the same as
    the one a native ``backend`` module of the same shape would produce.
    """

    inner: Record
    backend: Backend

    def into_item(self, settings: PrecisionSettings) -> Any:
        return self.inner.into_item(settings)

    @classmethod
    def from_item(
        cls,
        item: Any,
        device: torch.device,
        backend: Backend,
        inner_module: Module,
    ) -> RecordAdaptor:
        """Rebuild the inner record under the full-precision backend and wrap it."""
        return cls(inner_module.record_from_item(item, device), backend)
