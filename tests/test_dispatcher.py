import asyncio
from typing import Optional

import pytest
from pydantic import BaseModel, Field

from content_agent.agent_core import (
    InvalidParamsError,
    ToolCatalog,
    ToolDispatcher,
    ToolExecutionError,
    ToolNotFoundError,
)


class GreetParams(BaseModel):
    name: str = Field(min_length=1)
    mode: Optional[str] = None


@pytest.fixture
def catalog() -> ToolCatalog:
    catalog = ToolCatalog()

    async def greet(params: GreetParams, caller_id=None):
        return {"greeting": f"Hello {params.name}", "mode": params.mode, "caller": caller_id}

    def add(params, caller_id=None):
        return params["a"] + params["b"]

    async def slow(params, caller_id=None):
        await asyncio.sleep(1)

    catalog.register("greet", "Greets someone", greet, GreetParams, accepts_mode=True)
    catalog.register("add", "Adds two numbers", add)
    catalog.register("slow", "Takes its time", slow)
    return catalog


@pytest.mark.asyncio
async def test_params_model_instance_reaches_handler(catalog):
    dispatcher = ToolDispatcher(catalog)
    result = await dispatcher.call_tool("greet", {"name": "Ada"}, caller_id="agent-1", mode="ai-review")
    assert result == {"greeting": "Hello Ada", "mode": "ai-review", "caller": "agent-1"}


@pytest.mark.asyncio
async def test_explicit_mode_is_not_overridden(catalog):
    dispatcher = ToolDispatcher(catalog)
    result = await dispatcher.call_tool("greet", {"name": "Ada", "mode": "review"}, mode="ai-review")
    assert result["mode"] == "review"


@pytest.mark.asyncio
async def test_mode_is_not_injected_into_tools_without_mode(catalog):
    seen = []

    def echo(params, caller_id=None):
        seen.append(params)

    catalog.register("echo", "Echo", echo)
    await ToolDispatcher(catalog).call_tool("echo", {"x": 1}, mode="ai-review")
    assert seen == [{"x": 1}]


@pytest.mark.asyncio
async def test_json_string_params_are_decoded(catalog):
    result = await ToolDispatcher(catalog).call_tool("add", '{"a": 2, "b": 3}')
    assert result == 5


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["{not json", "[1, 2]"])
async def test_undecodable_params_raise(catalog, raw):
    with pytest.raises(InvalidParamsError):
        await ToolDispatcher(catalog).call_tool("add", raw)


@pytest.mark.asyncio
async def test_validation_errors_name_the_field(catalog):
    with pytest.raises(InvalidParamsError) as excinfo:
        await ToolDispatcher(catalog).call_tool("greet", {"name": ""})
    assert "Invalid params for tool 'greet'" in str(excinfo.value)
    assert "name" in str(excinfo.value)


@pytest.mark.asyncio
async def test_unknown_tool_raises(catalog):
    with pytest.raises(ToolNotFoundError):
        await ToolDispatcher(catalog).call_tool("missing", {})


@pytest.mark.asyncio
async def test_timeout_becomes_execution_error(catalog):
    with pytest.raises(ToolExecutionError) as excinfo:
        await ToolDispatcher(catalog, tool_timeout=0.01).call_tool("slow")
    assert "timed out" in str(excinfo.value)


@pytest.mark.asyncio
async def test_caller_params_are_not_mutated(catalog):
    params = {"name": "Ada"}
    await ToolDispatcher(catalog).call_tool("greet", params, mode="ai-review")
    assert params == {"name": "Ada"}
