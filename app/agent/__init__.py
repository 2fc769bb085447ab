"""
Agent package — conversational database agent

Components:
- Turn / ToolRequest / MemoryEvent: conversation types
- ConversationMemory: pinned instruction + sliding window of turns
- ToolRegistry: validated, textual-result employee tools
- AgentRunner (app.agent.executor): the bounded agent loop
"""
from app.agent.types import Turn, TurnRole, ToolRequest, MemoryEvent
from app.agent.memory import ConversationMemory, ConversationStore, get_conversation_store
from app.agent.tool_registry import ToolRegistry, Tool, ToolResult, ToolParameter

__all__ = [
    "Turn", "TurnRole", "ToolRequest", "MemoryEvent",
    "ConversationMemory", "ConversationStore", "get_conversation_store",
    "ToolRegistry", "Tool", "ToolResult", "ToolParameter",
]
