"""Tests for ParamId, Param and tensor kinds."""

from __future__ import annotations

import pytest
import torch

from fpbridge import Param, ParamId, ParamRecord, RecordError, TensorKind, tensor_kind
from fpbridge.module import ModuleMapper, ModuleVisitor


class KindRecorder(ModuleVisitor):
    def __init__(self) -> None:
        self.calls: list[tuple[str, ParamId]] = []

    def visit_float(self, id: ParamId, tensor: torch.Tensor) -> None:
        self.calls.append(("float", id))

    def visit_int(self, id: ParamId, tensor: torch.Tensor) -> None:
        self.calls.append(("int", id))

    def visit_bool(self, id: ParamId, tensor: torch.Tensor) -> None:
        self.calls.append(("bool", id))


class TestTensorKind:
    def test_kinds(self) -> None:
        assert tensor_kind(torch.zeros(2)) is TensorKind.FLOAT
        assert tensor_kind(torch.zeros(2, dtype=torch.bfloat16)) is TensorKind.FLOAT
        assert tensor_kind(torch.zeros(2, dtype=torch.int8)) is TensorKind.INT
        assert tensor_kind(torch.zeros(2, dtype=torch.bool)) is TensorKind.BOOL

    def test_complex_rejected(self) -> None:
        with pytest.raises(TypeError):
            tensor_kind(torch.zeros(2, dtype=torch.complex64))


class TestParamId:
    def test_unique(self) -> None:
        ids = {ParamId.new() for _ in range(1000)}
        assert len(ids) == 1000

    def test_parse_round_trip(self) -> None:
        pid = ParamId.new()
        assert ParamId.parse(str(pid)) == pid

    def test_parse_rejects_empty(self) -> None:
        with pytest.raises(ValueError):
            ParamId.parse("")


class TestParam:
    def test_float_requires_grad(self) -> None:
        param = Param.initialized(torch.zeros(3))
        assert param.requires_grad
        assert param.kind is TensorKind.FLOAT

    def test_int_param_has_no_grad(self) -> None:
        param = Param.initialized(torch.zeros(3, dtype=torch.int64))
        assert not param.requires_grad
        assert param.kind is TensorKind.INT

    def test_visit_dispatches_on_kind(self) -> None:
        visitor = KindRecorder()
        params = [
            Param.initialized(torch.zeros(1)),
            Param.initialized(torch.zeros(1, dtype=torch.int32)),
            Param.initialized(torch.zeros(1, dtype=torch.bool)),
        ]
        for param in params:
            param.visit(visitor)
        assert visitor.calls == [
            ("float", params[0].id),
            ("int", params[1].id),
            ("bool", params[2].id),
        ]

    def test_map_keeps_id_and_stays_leaf(self) -> None:
        class Double(ModuleMapper):
            def map_float(self, id: ParamId, tensor: torch.Tensor) -> torch.Tensor:
                return tensor * 2

        param = Param.initialized(torch.ones(2, 2))
        mapped = param.map(Double())
        assert mapped.id == param.id
        assert mapped.tensor.is_leaf
        assert mapped.requires_grad
        assert torch.equal(mapped.tensor, torch.full((2, 2), 2.0))
        assert torch.equal(param.tensor, torch.ones(2, 2))

    def test_fork_to_meta(self, meta: torch.device) -> None:
        param = Param.initialized(torch.ones(3))
        forked = param.fork(meta)
        assert forked.id == param.id
        assert forked.device == meta
        assert forked.requires_grad
        assert forked.tensor.is_leaf
        assert param.device == torch.device("cpu")

    def test_to_device_keeps_id(self, meta: torch.device) -> None:
        param = Param.initialized(torch.ones(3))
        moved = param.to_device(meta)
        assert moved.id == param.id
        assert moved.device == meta

    def test_collect_devices_does_not_duplicate(self) -> None:
        param = Param.initialized(torch.ones(3))
        devices = param.collect_devices([torch.device("cpu")])
        assert devices == [torch.device("cpu")]
        devices = param.collect_devices([torch.device("meta")])
        assert devices == [torch.device("meta"), torch.device("cpu")]

    def test_load_record_takes_record_id(self) -> None:
        param = Param.initialized(torch.zeros(2))
        record = ParamRecord(ParamId.new(), torch.tensor([1.0, 2.0], dtype=torch.float64))
        loaded = param.load_record(record)
        assert loaded.id == record.id
        assert loaded.tensor.dtype == torch.float32
        assert loaded.requires_grad
        assert torch.equal(loaded.tensor, torch.tensor([1.0, 2.0]))

    def test_load_record_shape_mismatch(self) -> None:
        param = Param.initialized(torch.zeros(2))
        with pytest.raises(RecordError, match="shape"):
            param.load_record(ParamRecord(ParamId.new(), torch.zeros(3)))
