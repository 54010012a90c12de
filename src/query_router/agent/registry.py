"""Registry of the tools a classification can route to."""

from __future__ import annotations

from collections.abc import Callable
from time import perf_counter
from typing import Any

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, ConfigDict, Field

from query_router.types import ToolCall, ToolTrace

_PREVIEW_CHARS = 320


class ToolSpec(BaseModel):
    """A routable tool: validated input, handler, and its empty answers.

    `empty_markers` are output prefixes meaning the tool had nothing to
    offer, e.g. `NO_RESULTS` from a search or `UNAVAILABLE:` when no backend
    is wired in.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    description: str
    args_schema: type[BaseModel]
    handler: Callable[[BaseModel], str]
    empty_markers: tuple[str, ...] = ()
    tags: list[str] = Field(default_factory=list)

    def is_empty(self, output: str) -> bool:
        text = output.strip()
        return not text or any(text.startswith(marker) for marker in self.empty_markers)


class ToolRegistry:
    """Name-keyed tool lookup shared by every routing request.

    Registration happens at startup; afterwards the registry is read-only, so
    concurrent `call`s need no locking. Each call returns its own trace
    instead of reporting to shared state.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"Tool already registered: {spec.name}")
        self._tools[spec.name] = spec

    def has(self, name: str) -> bool:
        return name in self._tools

    def get(self, name: str) -> ToolSpec:
        spec = self._tools.get(name)
        if spec is None:
            raise KeyError(f"Unknown tool: {name}")
        return spec

    def specs(self) -> list[ToolSpec]:
        return list(self._tools.values())

    def call(self, name: str, payload: dict[str, Any]) -> ToolCall:
        """Validate `payload`, run the tool and time it."""
        spec = self.get(name)
        start = perf_counter()
        output = spec.handler(spec.args_schema.model_validate(payload))
        latency_ms = (perf_counter() - start) * 1000.0
        trace = ToolTrace(
            name=spec.name,
            input_payload=dict(payload),
            output_preview=output[:_PREVIEW_CHARS],
            latency_ms=latency_ms,
            empty=spec.is_empty(output),
        )
        return ToolCall(output=output, trace=trace)

    def execute(self, name: str, payload: dict[str, Any]) -> str:
        return self.call(name, payload).output

    def as_langchain_tools(self) -> list[StructuredTool]:
        """Export the routing tools for an LLM orchestrator."""
        return [
            StructuredTool.from_function(
                name=spec.name,
                description=spec.description,
                args_schema=spec.args_schema,
                func=self._bind(spec.name),
            )
            for spec in self._tools.values()
        ]

    def _bind(self, name: str) -> Callable[..., str]:
        def _run(**kwargs: Any) -> str:
            return self.execute(name, kwargs)

        return _run
