"""Uniform result shape for every tool invocation.

A handler returns either :class:`Success` or :class:`Failure`. Both carry a
structured payload plus a text rendering of it, so clients that only read
text still get the full result.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Union

from pydantic import BaseModel


def render_text(payload: Dict[str, Any]) -> str:
    """Compact, deterministic JSON: equal payloads give byte-identical text."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class Success:
    payload: Dict[str, Any]

    is_error = False

    @classmethod
    def of(cls, model: BaseModel) -> "Success":
        return cls(model.model_dump(by_alias=True, exclude_none=True))

    @property
    def text(self) -> str:
        return render_text(self.payload)


@dataclass(frozen=True)
class Failure:
    """The tool ran but reported a problem (missing file, bad directory...)."""

    error: str
    context: Dict[str, Any] = field(default_factory=dict)

    is_error = True

    @property
    def payload(self) -> Dict[str, Any]:
        return {**self.context, "error": self.error}

    @property
    def text(self) -> str:
        return render_text(self.payload)


InvocationResult = Union[Success, Failure]


def envelope(result: InvocationResult) -> Dict[str, Any]:
    return {
        "content": [{"type": "text", "text": result.text}],
        "structuredContent": result.payload,
    }
