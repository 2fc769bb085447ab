"""
Query Tool — read-only SQL against the company database.
"""
import json

from pydantic import BaseModel, ConfigDict, Field

from app.agent.tool_registry import Tool, ToolResult, ToolParameter
from app.db import queries


class QueryArgs(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sql: str = Field(..., min_length=1)


class QueryDatabaseTool(Tool):
    """Run a SELECT statement and return the rows as JSON"""

    name = "query_database"
    description = "Run a read-only SQL SELECT query to look up information."
    parameters = [
        ToolParameter(name="sql", type="string", description="The SELECT statement to run"),
    ]
    args_model = QueryArgs
    mutates = False

    async def run(self, args: QueryArgs) -> ToolResult:
        try:
            rows = await queries.run_read_query(self.db, args.sql)
        except Exception as e:
            return ToolResult(success=False, error=f"Query failed: {e}")

        return ToolResult(
            success=True,
            output=json.dumps(rows, ensure_ascii=False, default=str),
            metadata={"row_count": len(rows)},
        )
