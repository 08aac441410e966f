"""Shared fixtures: CPU backends and small modules.

Tests run on CPU only.  The ``meta`` device stands in for a second device.
"""

from __future__ import annotations

import pytest
import torch

from fpbridge import Backend, Module, Param, get_backend
from fpbridge.nn import Linear, RMSNorm


class StepCounter(Module):
    """Module holding one float and one integer parameter."""

    def __init__(self, backend: Backend):
        super().__init__(backend)
        self.scale = Param.initialized(torch.ones(2, dtype=backend.float_dtype))
        self.steps = Param.initialized(torch.zeros(1, dtype=backend.int_dtype))


class Masked(Module):
    """Module holding a boolean parameter."""

    def __init__(self, backend: Backend):
        super().__init__(backend)
        self.mask = Param.initialized(torch.tensor([True, False, True]))


@pytest.fixture()
def host() -> Backend:
    return get_backend("cpu-f16")


@pytest.fixture()
def full() -> Backend:
    return get_backend("cpu")


@pytest.fixture()
def meta() -> torch.device:
    return torch.device("meta")


@pytest.fixture()
def linear(full: Backend) -> Linear:
    torch.manual_seed(0)
    return Linear(4, 3, backend=full)


@pytest.fixture()
def norm(full: Backend) -> RMSNorm:
    return RMSNorm(8, backend=full)


@pytest.fixture()
def step_counter(full: Backend) -> StepCounter:
    return StepCounter(full)


@pytest.fixture()
def masked(full: Backend) -> Masked:
    return Masked(full)
