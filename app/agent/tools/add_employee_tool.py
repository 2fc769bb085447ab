"""
Add Employee Tool — hire someone by inserting one employee record.
"""
from pydantic import BaseModel, ConfigDict, Field

from app.agent.tool_registry import Tool, ToolResult, ToolParameter
from app.db import queries


class AddEmployeeArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    position: str = Field(..., min_length=1)
    salary: float


class AddEmployeeTool(Tool):
    name = "add_employee"
    description = "Hire a new employee by adding them to the database."
    parameters = [
        ToolParameter(name="name", type="string", description="Employee name"),
        ToolParameter(name="position", type="string", description="Job position"),
        ToolParameter(name="salary", type="number", description="Salary (a number)"),
    ]
    args_model = AddEmployeeArgs
    mutates = True

    async def run(self, args: AddEmployeeArgs) -> ToolResult:
        try:
            record = await queries.create_employee(self.db, args.name, args.position, args.salary)
        except Exception as e:
            return ToolResult(success=False, error=f"Operation error: {e}")

        return ToolResult(
            success=True,
            output=(
                f"Success! Added {record['name']} ({record['position']}, salary {record['salary']}). "
                f"New employee ID is {record['id']}."
            ),
            metadata={"employee": record},
        )
