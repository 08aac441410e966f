"""Tests for the generic Module traversal, placement and records."""

from __future__ import annotations

import pytest
import torch

from fpbridge import BackendMismatchError, ModuleRecord, RecordError, get_backend
from fpbridge.ids import ParamId
from fpbridge.module import ModuleMapper, ModuleVisitor
from fpbridge.nn import FeedForward, Linear, RMSNorm, Sequential


class ShapeVisitor(ModuleVisitor):
    def __init__(self) -> None:
        self.shapes: dict[ParamId, tuple[int, ...]] = {}

    def visit_float(self, id: ParamId, tensor: torch.Tensor) -> None:
        self.shapes[id] = tuple(tensor.shape)


class AddOne(ModuleMapper):
    def map_float(self, id: ParamId, tensor: torch.Tensor) -> torch.Tensor:
        return tensor + 1


class TestTraversal:
    def test_visit_order(self, linear: Linear) -> None:
        visitor = ShapeVisitor()
        linear.visit(visitor)
        assert list(visitor.shapes) == [linear.weight.id, linear.bias.id]
        assert list(visitor.shapes.values()) == [(3, 4), (3,)]

    def test_nested_visit_is_depth_first(self) -> None:
        backend = get_backend("cpu")
        ffn = FeedForward(4, 8, use_smooth_swiglu=True, backend=backend)
        ids = ffn.param_ids()
        assert ids == [
            ffn.gate_proj.weight.id,
            ffn.up_proj.weight.id,
            ffn.down_proj.weight.id,
            ffn.smooth_scale.id,
        ]

    def test_map_returns_new_module(self, linear: Linear) -> None:
        original = linear.weight.tensor.detach().clone()
        mapped = linear.map(AddOne())
        assert mapped is not linear
        assert torch.equal(linear.weight.tensor, original)
        assert torch.allclose(mapped.weight.tensor, original + 1)
        assert mapped.param_ids() == linear.param_ids()

    def test_num_params(self, linear: Linear) -> None:
        assert linear.num_params() == 3 * 4 + 3

    def test_no_grad(self, linear: Linear) -> None:
        frozen = linear.no_grad()
        assert not frozen.weight.requires_grad
        assert linear.weight.requires_grad

    def test_linear_without_bias(self) -> None:
        layer = Linear(4, 2, bias=False, backend=get_backend("cpu"))
        assert layer.num_params() == 8
        assert len(layer.param_ids()) == 1


class TestDevices:
    def test_devices(self, linear: Linear) -> None:
        assert linear.devices() == [torch.device("cpu")]

    def test_accumulator_is_kept(self, linear: Linear, meta: torch.device) -> None:
        devices = linear.collect_devices([meta])
        assert devices == [meta, torch.device("cpu")]

    def test_collection_is_idempotent(self, linear: Linear) -> None:
        assert linear.collect_devices(linear.devices()) == linear.devices()

    def test_fork(self, linear: Linear, meta: torch.device) -> None:
        forked = linear.fork(meta)
        assert forked.devices() == [meta]
        assert linear.devices() == [torch.device("cpu")]
        assert forked.param_ids() == linear.param_ids()

    def test_to_device_sequential(self, meta: torch.device) -> None:
        backend = get_backend("cpu")
        model = Sequential(Linear(4, 4, backend=backend), RMSNorm(4, backend=backend))
        moved = model.to_device(meta)
        assert moved.devices() == [meta]
        assert model.devices() == [torch.device("cpu")]


class TestRecords:
    def test_round_trip(self, linear: Linear) -> None:
        other = Linear(4, 3, backend=get_backend("cpu"))
        loaded = other.load_record(linear.into_record())
        assert loaded.param_ids() == linear.param_ids()
        assert torch.equal(loaded.weight.tensor, linear.weight.tensor)
        assert loaded.weight.requires_grad

    def test_missing_field(self, linear: Linear) -> None:
        with pytest.raises(RecordError, match="no field 'weight'"):
            linear.load_record(ModuleRecord({}))

    def test_wrong_shape(self, linear: Linear) -> None:
        other = Linear(5, 3, backend=get_backend("cpu"))
        with pytest.raises(RecordError, match="shape"):
            linear.load_record(other.into_record())

    def test_sequential_record_fields(self) -> None:
        backend = get_backend("cpu")
        model = Sequential(Linear(2, 2, backend=backend), Linear(2, 2, backend=backend))
        record = model.into_record()
        assert set(record["layers"].fields) == {"0", "1"}


class TestSequential:
    def test_forward(self) -> None:
        backend = get_backend("cpu")
        model = Sequential(Linear(4, 8, backend=backend), RMSNorm(8, backend=backend))
        assert model(torch.randn(2, 4)).shape == (2, 8)

    def test_rejects_mixed_backends(self) -> None:
        with pytest.raises(BackendMismatchError, match="FullPrecisionAdaptor"):
            Sequential(
                Linear(4, 4, backend=get_backend("cpu")),
                Linear(4, 4, backend=get_backend("cpu-f16")),
            )

    def test_rejects_empty(self) -> None:
        with pytest.raises(ValueError):
            Sequential()
