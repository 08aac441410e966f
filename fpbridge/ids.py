from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class ParamId:
    """Stable identifier of one learnable parameter.

    Minted once when the parameter is created and carried unchanged through
    device moves, precision conversion and serialization.
    """

    value: str

    @classmethod
    def new(cls) -> ParamId:
        return cls(uuid.uuid4().hex)

    @classmethod
    def parse(cls, text: str) -> ParamId:
        if not isinstance(text, str) or not text:
            raise ValueError(f"Invalid ParamId {text!r}")
        return cls(text)

    def __str__(self) -> str:
        return self.value
