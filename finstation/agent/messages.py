from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Literal, Mapping, Union

from finstation.errors import InvalidInputError

# Tools the chat agent may request; each maps to a MarketDataClient call.
SUPPORTED_TOOLS = ("get_company_profile", "get_income_statement")


@dataclass(frozen=True)
class ToolCall:
    name: str
    args: Dict[str, Any] = field(default_factory=dict)
    type: Literal["TOOL_CALL"] = "TOOL_CALL"


@dataclass(frozen=True)
class TextReply:
    text: str
    type: Literal["TEXT"] = "TEXT"


AgentReply = Union[ToolCall, TextReply]


def parse_agent_reply(payload: Mapping[str, Any]) -> AgentReply:
    """Convert the model's {'type': 'TOOL_CALL'|'TEXT', ...} dict into a typed reply."""
    if not isinstance(payload, Mapping):
        raise InvalidInputError("agent reply must be an object", field="type")
    kind = payload.get("type")
    if kind == "TOOL_CALL":
        name = payload.get("name")
        if name not in SUPPORTED_TOOLS:
            raise InvalidInputError(f"unsupported tool {name!r}", field="name")
        args = payload.get("args") or {}
        if not isinstance(args, Mapping):
            raise InvalidInputError("tool args must be an object", field="args")
        return ToolCall(name=name, args=dict(args))
    if kind == "TEXT":
        return TextReply(text=str(payload.get("text") or ""))
    raise InvalidInputError(f"unknown agent reply type {kind!r}", field="type")


def run_tool(call: ToolCall, client: Any) -> Any:
    """Execute a tool call against a MarketDataClient and return JSON-ready data."""
    ticker = str(call.args.get("ticker", "")).upper()
    if call.name == "get_company_profile":
        profile = client.company_profile(ticker)
        return asdict(profile) if profile is not None else None
    if call.name == "get_income_statement":
        limit = int(call.args.get("limit", 5))
        return [asdict(r) for r in client.income_statements(ticker, limit=limit)]
    raise InvalidInputError(f"unsupported tool {call.name!r}", field="name")
