"""Built-in tools package for the agent"""
from app.agent.tools.query_tool import QueryDatabaseTool
from app.agent.tools.add_employee_tool import AddEmployeeTool
from app.agent.tools.delete_employee_tool import DeleteEmployeeTool
from app.agent.tools.update_employee_tool import UpdateEmployeeTool

__all__ = ["QueryDatabaseTool", "AddEmployeeTool", "DeleteEmployeeTool", "UpdateEmployeeTool"]
