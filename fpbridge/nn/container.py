from typing import Any, Optional

from ..backend import Backend
from ..errors import BackendMismatchError
from ..module import Module


class Sequential(Module):
    """Chain of modules applied in order.  All layers share one backend."""

    def __init__(self, *layers: Module, backend: Optional[Backend] = None):
        if not layers:
            raise ValueError("Sequential needs at least one layer")
        backend = backend or layers[0].backend
        for i, layer in enumerate(layers):
            if layer.backend != backend:
                raise BackendMismatchError(
                    f"Layer {i} ({type(layer).__name__}) runs on '{layer.backend}', "
                    f"expected '{backend}'. Wrap full-precision layers in FullPrecisionAdaptor."
                )
        super().__init__(backend)
        self.layers = list(layers)

    def __len__(self) -> int:
        return len(self.layers)

    def __getitem__(self, index: int) -> Module:
        return self.layers[index]

    def forward(self, x: Any) -> Any:
        for layer in self.layers:
            x = layer(x)
        return x
