"""File recorders: persist module records at a chosen precision.

Two formats are provided:

- :class:`CheckpointRecorder` writes ``.pt`` files with ``torch.save`` and
  reads them back with ``torch.load(weights_only=True)``.
- :class:`JsonRecorder` writes human-readable ``.json`` files.

Both wrap the item in a small envelope carrying metadata::

    {"metadata": {"format": "checkpoint", "precision": "half", "version": "0.1.0"},
     "item": {...}}
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

import torch

from ..errors import RecordError
from .base import Record
from .settings import FULL_PRECISION, PrecisionSettings

if TYPE_CHECKING:
    from ..module.base import Module

logger = logging.getLogger("fpbridge.record")


class FileRecorder(ABC):
    format_name: str = ""
    file_extension: str = ""

    def __init__(self, settings: PrecisionSettings = FULL_PRECISION):
        self.settings = settings

    def resolve_path(self, path: str | Path) -> Path:
        path = Path(path)
        if path.suffix != self.file_extension:
            path = path.with_name(path.name + self.file_extension)
        return path

    def record(self, record: Record, path: str | Path) -> Path:
        """Persist *record* at ``self.settings`` precision and return the file path."""
        from .. import __version__

        path = self.resolve_path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "metadata": {
                "format": self.format_name,
                "precision": self.settings.name,
                "version": __version__,
            },
            "item": record.into_item(self.settings),
        }
        self._write(payload, path)
        logger.info("Saved %s record to %s (%s precision)", self.format_name, path, self.settings.name)
        return path

    def load_item(self, path: str | Path) -> Any:
        path = self.resolve_path(path)
        if not path.exists():
            raise FileNotFoundError(f"No record file at {path}")
        payload = self._read(path)
        if not isinstance(payload, dict) or "item" not in payload:
            raise RecordError(f"{path} is not a {self.format_name} record file")
        metadata = payload.get("metadata", {})
        logger.info(
            "Loaded %s record from %s (saved with %s precision, version %s)",
            self.format_name,
            path,
            metadata.get("precision", "?"),
            metadata.get("version", "?"),
        )
        return payload["item"]

    def load(
        self,
        module: Module,
        path: str | Path,
        device: Optional[torch.device] = None,
    ) -> Module:
        """Load the record at *path* into *module* and return the new module."""
        device = device or module.backend.default_device()
        record = module.record_from_item(self.load_item(path), device)
        return module.load_record(record)

    @abstractmethod
    def _write(self, payload: dict[str, Any], path: Path) -> None: ...

    @abstractmethod
    def _read(self, path: Path) -> Any: ...


class CheckpointRecorder(FileRecorder):
    format_name = "checkpoint"
    file_extension = ".pt"

    def _write(self, payload: dict[str, Any], path: Path) -> None:
        torch.save(payload, path)

    def _read(self, path: Path) -> Any:
        return torch.load(path, map_location="cpu", weights_only=True)


class JsonRecorder(FileRecorder):
    format_name = "json"
    file_extension = ".json"

    def __init__(self, settings: PrecisionSettings = FULL_PRECISION, indent: int | None = 2):
        super().__init__(settings)
        self.indent = indent

    def _write(self, payload: dict[str, Any], path: Path) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=self.indent)

    def _read(self, path: Path) -> Any:
        with open(path, encoding="utf-8") as f:
            return json.load(f)


RECORDERS: dict[str, type[FileRecorder]] = {
    "checkpoint": CheckpointRecorder,
    "json": JsonRecorder,
}


def get_recorder(name: str, settings: PrecisionSettings = FULL_PRECISION) -> FileRecorder:
    if name not in RECORDERS:
        raise ValueError(f"Unknown recorder '{name}'. Available: {list(RECORDERS.keys())}")
    return RECORDERS[name](settings)
