"""
Delete Employee Tool — dismiss employees by name.

The success text carries every deleted record in full. There is no
rollback, so that text is the only place an "undo that" request can
recover the data from.
"""
import json

from pydantic import BaseModel, ConfigDict, Field

from app.agent.tool_registry import Tool, ToolResult, ToolParameter
from app.db import queries


class DeleteEmployeeArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)


class DeleteEmployeeTool(Tool):
    name = "delete_employee"
    description = "Dismiss an employee by name (removes their record from the database)."
    parameters = [
        ToolParameter(name="name", type="string", description="Name of the employee to dismiss"),
    ]
    args_model = DeleteEmployeeArgs
    mutates = True

    async def run(self, args: DeleteEmployeeArgs) -> ToolResult:
        try:
            deleted = await queries.delete_employees_by_name(self.db, args.name)
        except Exception as e:
            return ToolResult(success=False, error=f"Operation error: {e}")

        if not deleted:
            return ToolResult(
                success=False,
                error=f"Operation failed: no employee named '{args.name}' was found.",
            )

        records = json.dumps(deleted, ensure_ascii=False)
        return ToolResult(
            success=True,
            output=(
                f"Success! Deleted {len(deleted)} employee(s) named {args.name}. "
                f"Deleted records: {records}. "
                f"Use these exact values with add_employee if the user asks to undo."
            ),
            metadata={"deleted": deleted},
        )
