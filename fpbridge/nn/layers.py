import math
from typing import Optional

import torch
import torch.nn.functional as F

from ..backend import Backend
from ..module import Module, Param


def _uniform(shape: tuple[int, ...], bound: float, backend: Backend, device: torch.device) -> torch.Tensor:
    # Sample in float32 so every backend dtype gets the same distribution.
    values = torch.empty(shape, dtype=torch.float32, device=device).uniform_(-bound, bound)
    return values.to(backend.float_dtype)


class Linear(Module):
    """Affine transform ``y = x @ W^T + b`` with Kaiming-uniform init."""

    def __init__(
        self,
        d_input: int,
        d_output: int,
        bias: bool = True,
        *,
        backend: Backend,
        device: Optional[torch.device] = None,
    ):
        super().__init__(backend)
        device = device or backend.default_device()
        bound = 1.0 / math.sqrt(d_input)
        self.weight = Param.initialized(_uniform((d_output, d_input), bound, backend, device))
        self.bias = Param.initialized(_uniform((d_output,), bound, backend, device)) if bias else None

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        bias = self.bias.tensor if self.bias is not None else None
        return F.linear(x, self.weight.tensor, bias)


class Embedding(Module):
    def __init__(
        self,
        n_embedding: int,
        d_model: int,
        *,
        backend: Backend,
        device: Optional[torch.device] = None,
    ):
        super().__init__(backend)
        device = device or backend.default_device()
        weight = torch.randn(n_embedding, d_model, device=device).to(backend.float_dtype)
        self.weight = Param.initialized(weight)

    def forward(self, ids: torch.Tensor) -> torch.Tensor:
        return F.embedding(ids, self.weight.tensor)


class RMSNorm(Module):
    """Root Mean Square Layer Normalization.

    Faster than LayerNorm: no mean subtraction, no bias.
    """

    def __init__(
        self,
        dim: int,
        eps: float = 1e-6,
        *,
        backend: Backend,
        device: Optional[torch.device] = None,
    ):
        super().__init__(backend)
        device = device or backend.default_device()
        self.eps = eps
        self.weight = Param.initialized(torch.ones(dim, dtype=backend.float_dtype, device=device))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        norm = x.float().pow(2).mean(-1, keepdim=True).add(self.eps).rsqrt()
        return (x.float() * norm).type_as(x) * self.weight.tensor


class FeedForward(Module):
    """SwiGLU feed-forward network with optional Smooth-SwiGLU.

    Standard:  output = down_proj(SiLU(gate_proj(x)) * up_proj(x))
    Smooth:    output = down_proj(SiLU(gate_proj(x)) * (up_proj(x) * smooth_scale))

    The smooth scale is a per-channel learnable parameter initialised to 1.0.
    """

    def __init__(
        self,
        dim: int,
        hidden_dim: int,
        use_smooth_swiglu: bool = False,
        *,
        backend: Backend,
        device: Optional[torch.device] = None,
    ):
        super().__init__(backend)
        device = device or backend.default_device()
        self.gate_proj = Linear(dim, hidden_dim, bias=False, backend=backend, device=device)
        self.up_proj = Linear(dim, hidden_dim, bias=False, backend=backend, device=device)
        self.down_proj = Linear(hidden_dim, dim, bias=False, backend=backend, device=device)

        self.smooth_scale: Param | None = None
        if use_smooth_swiglu:
            self.smooth_scale = Param.initialized(torch.ones(hidden_dim, dtype=backend.float_dtype, device=device))

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        gate = F.silu(self.gate_proj(x))
        up = self.up_proj(x)
        if self.smooth_scale is not None:
            up = up * self.smooth_scale.tensor
        return self.down_proj(gate * up)
