"""
Tool Registry — Central registry for agent-executable tools

Each tool is a self-describing, executable unit: the reasoning service sees
its schema in the tool catalog, and the registry decodes and validates the
arguments it sends before the tool touches the database.
"""
from typing import Dict, Any, List, Optional, Type
from dataclasses import dataclass, field
import json
import logging
import time
import traceback

from pydantic import BaseModel, ValidationError

from app.agent.types import ToolRequest

logger = logging.getLogger(__name__)


@dataclass
class ToolResult:
    """Result returned by a tool execution"""
    success: bool
    output: Optional[str] = None
    error: Optional[str] = None
    latency_ms: int = 0
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_text(self) -> str:
        """Text appended to the conversation as the tool-result turn"""
        if self.success:
            return self.output or ""
        return self.error or "Operation failed."


@dataclass
class ToolParameter:
    """Describes a single tool parameter"""
    name: str
    type: str  # "string", "integer", "number", "boolean"
    description: str
    required: bool = True


class Tool:
    """
    Base class for all agent tools.

    Subclasses set `name`, `description`, `parameters`, `args_model` and
    `mutates`, and implement `run()`. `run()` receives an already validated
    `args_model` instance.
    """

    name: str = ""
    description: str = ""
    parameters: List[ToolParameter] = []
    args_model: Type[BaseModel] = BaseModel
    mutates: bool = False

    def __init__(self, db):
        self.db = db

    async def run(self, args: BaseModel) -> ToolResult:
        raise NotImplementedError(f"Tool '{self.name}' must implement run()")

    def decode(self, arguments: Dict[str, Any]) -> BaseModel:
        """Validate raw arguments; raises ValidationError"""
        return self.args_model.model_validate(arguments)

    def to_schema(self) -> Dict[str, Any]:
        """Export tool as a chat-completions `tools` entry"""
        params = {}
        required = []
        for p in self.parameters:
            params[p.name] = {"type": p.type, "description": p.description}
            if p.required:
                required.append(p.name)

        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": params,
                    "required": required,
                },
            },
        }


def _format_validation_error(exc: ValidationError) -> str:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ())) or "arguments"
        problems.append(f"{location}: {err.get('msg', 'invalid')}")
    return "; ".join(problems)


class ToolRegistry:
    """
    Central registry for all agent tools.

    Usage:
        registry = ToolRegistry()
        registry.register(AddEmployeeTool(db))
        result = await registry.execute(ToolRequest(id="call_1", name="add_employee", arguments={...}))
    """

    def __init__(self):
        self._tools: Dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Register a tool in the registry"""
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.debug(f"🔧 Registered tool: {tool.name}")

    def get(self, name: str) -> Optional[Tool]:
        """Get a tool by name"""
        return self._tools.get(name)

    def list_tools(self) -> List[Dict[str, Any]]:
        """The tool catalog sent to the reasoning service every round"""
        return [tool.to_schema() for tool in self._tools.values()]

    def list_names(self) -> List[str]:
        """List all registered tool names"""
        return list(self._tools.keys())

    def count(self) -> int:
        """Number of registered tools"""
        return len(self._tools)

    def is_mutating(self, name: str) -> bool:
        """True if the named tool writes to the database"""
        tool = self._tools.get(name)
        return bool(tool and tool.mutates)

    async def execute(self, request: ToolRequest) -> ToolResult:
        """
        Execute one requested tool call.

        Never raises: unknown tools, undecodable or invalid arguments and
        database errors all come back as failed ToolResults whose text the
        reasoning service reads on the next round.
        """
        tool = self._tools.get(request.name)
        if not tool:
            return ToolResult(
                success=False,
                error=f"Operation failed: unknown tool '{request.name}'. Available: {self.list_names()}",
            )

        if request.raw_arguments is not None:
            return ToolResult(
                success=False,
                error=f"Operation failed: arguments for {request.name} are not a JSON object: {request.raw_arguments[:200]}",
            )

        try:
            args = tool.decode(request.arguments)
        except ValidationError as e:
            return ToolResult(
                success=False,
                error=f"Operation failed: invalid arguments for {request.name}: {_format_validation_error(e)}",
            )

        start_time = time.time()
        try:
            result = await tool.run(args)
            result.latency_ms = int((time.time() - start_time) * 1000)
            return result
        except Exception as e:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.warning(f"Tool {request.name} raised {type(e).__name__}: {e}")
            return ToolResult(
                success=False,
                error=f"Operation error: {e}",
                latency_ms=latency_ms,
                metadata={"traceback": traceback.format_exc()},
            )


# ─── Singleton ───────────────────────────────────────────────────────────────

_registry: Optional[ToolRegistry] = None


def build_tool_registry(db) -> ToolRegistry:
    """Create a registry with the built-in employee tools bound to `db`"""
    from app.agent.tools.query_tool import QueryDatabaseTool
    from app.agent.tools.add_employee_tool import AddEmployeeTool
    from app.agent.tools.delete_employee_tool import DeleteEmployeeTool
    from app.agent.tools.update_employee_tool import UpdateEmployeeTool

    registry = ToolRegistry()
    registry.register(QueryDatabaseTool(db))
    registry.register(AddEmployeeTool(db))
    registry.register(DeleteEmployeeTool(db))
    registry.register(UpdateEmployeeTool(db))
    return registry


def get_tool_registry() -> ToolRegistry:
    """Get or create the global tool registry"""
    global _registry
    if _registry is None:
        from app.db.database import db
        _registry = build_tool_registry(db)
        logger.info(f"✅ {_registry.count()} built-in tools registered")
    return _registry
