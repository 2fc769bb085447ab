"""
Update Employee Tool — partial update of one employee by ID.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.agent.tool_registry import Tool, ToolResult, ToolParameter
from app.db import queries


class UpdateEmployeeArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: int
    name: Optional[str] = Field(None, min_length=1)
    position: Optional[str] = Field(None, min_length=1)
    salary: Optional[float] = None


class UpdateEmployeeTool(Tool):
    name = "update_employee"
    description = (
        "Update an employee's name, position or salary by ID. "
        "Only the fields you pass are changed; look up the ID with query_database first."
    )
    parameters = [
        ToolParameter(name="id", type="integer", description="ID of the employee to update"),
        ToolParameter(name="name", type="string", description="New name", required=False),
        ToolParameter(name="position", type="string", description="New position", required=False),
        ToolParameter(name="salary", type="number", description="New salary", required=False),
    ]
    args_model = UpdateEmployeeArgs
    mutates = True

    async def run(self, args: UpdateEmployeeArgs) -> ToolResult:
        fields = args.model_dump(exclude={"id"}, exclude_none=True)
        if not fields:
            return ToolResult(
                success=True,
                output=f"No fields provided to update for employee ID {args.id}; nothing was changed.",
            )

        try:
            changed = await queries.update_employee(self.db, args.id, fields)
        except Exception as e:
            return ToolResult(success=False, error=f"Operation error: {e}")

        if changed == 0:
            return ToolResult(
                success=False,
                error=f"Operation failed: no employee with ID {args.id} was found.",
            )

        summary = ", ".join(f"{key}={value!r}" for key, value in fields.items())
        return ToolResult(
            success=True,
            output=f"Success! Updated employee ID {args.id}: {summary}.",
            metadata={"fields": fields},
        )
