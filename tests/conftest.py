"""
Shared test fixtures.

The reasoning service is replaced by a scripted provider that never makes
network calls; the database is a temporary SQLite file per test.
"""
import asyncio
import inspect
import itertools
from typing import Any, Callable, Dict, List, Union

import pytest

from app.agent.memory import ConversationStore
from app.agent.tool_registry import build_tool_registry
from app.agent.types import Turn, ToolRequest
from app.db import queries
from app.db.database import Database

_call_ids = itertools.count(1)


def tool_call(name: str, arguments: Dict[str, Any], call_id: str = None) -> ToolRequest:
    """Build a tool request the way the provider would"""
    return ToolRequest(id=call_id or f"call_{next(_call_ids)}", name=name, arguments=arguments)


def requests_turn(*requests: ToolRequest) -> Turn:
    return Turn.tool_requests_turn(list(requests))


ScriptStep = Union[Turn, Exception, Callable[[List[Dict[str, Any]]], Turn]]


class ScriptedProvider:
    """
    Stand-in for DeepSeekProvider.

    Each `complete()` call consumes the next step: a Turn is returned, an
    exception is raised, a callable is called with the messages (and
    awaited when it is a coroutine function).
    """

    def __init__(self, steps: List[ScriptStep]):
        self.steps = list(steps)
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, messages, tools) -> Turn:
        self.calls.append({"messages": messages, "tools": tools})
        if not self.steps:
            raise AssertionError("ScriptedProvider ran out of steps")
        step = self.steps.pop(0)
        if isinstance(step, Exception):
            raise step
        if callable(step):
            result = step(messages)
            if inspect.isawaitable(result):
                result = await result
            return result
        return step


class CountingDatabase(Database):
    """Database that counts every connection it opens"""

    def __init__(self, path: str):
        super().__init__(path)
        self.connections = 0

    def acquire(self, read_only: bool = False):
        self.connections += 1
        return super().acquire(read_only=read_only)


@pytest.fixture
def database(tmp_path):
    database = CountingDatabase(str(tmp_path / "company.db"))
    asyncio.run(database.connect())
    database.connections = 0
    return database


@pytest.fixture
def registry(database):
    return build_tool_registry(database)


@pytest.fixture
def store():
    return ConversationStore(max_turns=20, note_max_turns=12)


@pytest.fixture
def seed(database):
    """Insert employees; returns the stored records"""
    def _seed(*employees):
        records = []
        for name, position, salary in employees:
            records.append(asyncio.run(queries.create_employee(database, name, position, salary)))
        database.connections = 0
        return records
    return _seed


def all_employees(database) -> List[Dict[str, Any]]:
    return [queries.employee_record(row) for row in asyncio.run(queries.list_employees(database))]
