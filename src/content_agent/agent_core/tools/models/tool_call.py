"""Data models for tool execution."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class ToolCallRequest:
    """Represents a tool call requested by the model.

    ``tool`` is untrusted until looked up in the catalog; ``params`` may be a mapping,
    a JSON string or absent.
    """

    tool: str
    params: Any = None

    @classmethod
    def from_raw(cls, raw: Any) -> "ToolCallRequest":
        """Build a request from one entry of a ``tool_calls`` array.

        Accepts ``tool``/``tool_name``/``name`` for the tool and ``params``/``arguments``
        for the parameters. A missing tool name yields an empty ``tool`` which the
        executor reports as a failed call.

        Args:
            raw: The raw entry parsed from the model output.

        Returns:
            The normalized request.
        """
        if not isinstance(raw, Mapping):
            return cls(tool="", params=raw)
        name = raw.get("tool") or raw.get("tool_name") or raw.get("name") or ""
        params = raw.get("params")
        if params is None:
            params = raw.get("arguments")
        return cls(tool=str(name), params=params)


@dataclass(frozen=True)
class ToolCallResult:
    """Represents the outcome of executing a tool call.

    ``created_id`` and ``media_kind`` are engine side-channel fields and are not part
    of the serialized form sent back to the model.
    """

    tool: str
    success: bool
    result: Any = None
    error: Optional[str] = None
    created_id: Optional[str] = field(default=None, compare=False)
    media_kind: Optional[str] = field(default=None, compare=False)
    creates_entity: bool = field(default=False, compare=False)

    @classmethod
    def ok(cls, tool: str, result: Any, **side_channel: Any) -> "ToolCallResult":
        return cls(tool=tool, success=True, result=result, **side_channel)

    @classmethod
    def failed(cls, tool: str, error: str) -> "ToolCallResult":
        return cls(tool=tool, success=False, error=error or "Tool execution failed")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize into the shape reported back to the model."""
        data: Dict[str, Any] = {"tool": self.tool, "success": self.success}
        if self.success:
            data["result"] = self.result
        else:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ToolCallResult":
        """Rebuild a result from its serialized form."""
        return cls(
            tool=str(data.get("tool", "")),
            success=bool(data.get("success", False)),
            result=data.get("result"),
            error=data.get("error"),
        )

    def to_json(self, indent: int | None = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)
