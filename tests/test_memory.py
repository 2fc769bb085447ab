import asyncio
import json
import random

import pytest

from app.agent.memory import ConversationMemory, ConversationStore
from app.agent.types import Turn, TurnRole, ToolRequest, MemoryEvent


def roles(memory):
    return [turn.role for turn in memory.turns]


def test_ensure_instruction_inserts_then_overwrites():
    memory = ConversationMemory(max_turns=10, note_max_turns=5)
    memory.ensure_instruction("schema v1")
    memory.append(Turn.user("hi"))
    memory.append(Turn.assistant("hello"))

    memory.ensure_instruction("schema v2")

    turns = memory.turns
    assert len(turns) == 3
    assert turns[0].role == TurnRole.INSTRUCTION
    assert turns[0].content == "schema v2"
    assert [t.content for t in turns[1:]] == ["hi", "hello"]


def test_ensure_instruction_does_not_overwrite_an_earlier_note():
    memory = ConversationMemory(max_turns=10, note_max_turns=5)
    memory.inject_note("Alice was hired on the dashboard")

    memory.ensure_instruction("rules")

    assert roles(memory) == [TurnRole.INSTRUCTION, TurnRole.SYSTEM_NOTE]
    assert memory.turns[1].content == "Alice was hired on the dashboard"


def test_trim_keeps_instruction_and_drops_orphaned_tool_results():
    memory = ConversationMemory(max_turns=5, note_max_turns=5)
    memory.ensure_instruction("rules")
    memory.append(Turn.user("u1"))
    memory.append(Turn.tool_requests_turn([
        ToolRequest(id="c1", name="query_database", arguments={"sql": "SELECT 1"}),
        ToolRequest(id="c2", name="query_database", arguments={"sql": "SELECT 2"}),
    ]))
    memory.append(Turn.tool_result("c1", "[]"))
    memory.append(Turn.tool_result("c2", "[]"))
    assert len(memory) == 5

    memory.append(Turn.user("u2"))
    assert roles(memory) == [
        TurnRole.INSTRUCTION,
        TurnRole.ASSISTANT_TOOL_REQUESTS,
        TurnRole.TOOL_RESULT,
        TurnRole.TOOL_RESULT,
        TurnRole.USER,
    ]

    # Evicting the request turn must take its results with it
    memory.append(Turn.assistant("done"))
    assert roles(memory) == [TurnRole.INSTRUCTION, TurnRole.USER, TurnRole.ASSISTANT]
    assert memory.turns[1].content == "u2"


def test_trim_invariant_holds_for_random_sequences():
    rng = random.Random(1234)
    factories = [
        lambda i: Turn.user(f"u{i}"),
        lambda i: Turn.assistant(f"a{i}"),
        lambda i: Turn.tool_requests_turn([ToolRequest(id=f"c{i}", name="query_database")]),
        lambda i: Turn.tool_result(f"c{i}", f"r{i}"),
        lambda i: Turn.note(f"n{i}"),
    ]

    for bound in (2, 3, 5, 8):
        memory = ConversationMemory(max_turns=bound, note_max_turns=bound)
        memory.ensure_instruction("rules")
        instruction = memory.turns[0]
        appended = []

        for i in range(200):
            turn = rng.choice(factories)(i)
            appended.append(turn)
            memory.append(turn)

            turns = memory.turns
            assert turns[0] is instruction
            assert len(turns) <= bound
            if len(turns) > 1:
                assert turns[1].role != TurnRole.TOOL_RESULT
            # order preserved, nothing duplicated
            ids = [id(t) for t in turns[1:]]
            assert len(ids) == len(set(ids))
            positions = [next(j for j, a in enumerate(appended) if a is t) for t in turns[1:]]
            assert positions == sorted(positions)


def test_inject_note_uses_smaller_bound():
    memory = ConversationMemory(max_turns=10, note_max_turns=4)
    memory.ensure_instruction("rules")
    for i in range(6):
        memory.append(Turn.user(f"u{i}"))
    assert len(memory) == 7

    memory.inject_note("Bob's salary was changed on the dashboard")

    turns = memory.turns
    assert len(turns) == 4
    assert turns[0].role == TurnRole.INSTRUCTION
    assert [t.content for t in turns[1:3]] == ["u4", "u5"]
    assert turns[3].role == TurnRole.SYSTEM_NOTE


def test_memory_event_renders_only_at_message_boundary():
    memory = ConversationMemory(max_turns=10, note_max_turns=5)
    event = MemoryEvent(
        action="deleted",
        employee={"id": 7, "name": "Alice", "position": "Engineer", "salary": 9000.0},
    )
    turn = memory.inject_note(event)

    assert turn.event is event
    assert turn.content == ""
    message = memory.to_messages()[0]
    assert message["role"] == "system"
    assert message["content"].startswith("Note:")
    assert '"name": "Alice"' in message["content"]
    assert memory.snapshot()[0]["event"]["action"] == "deleted"


def test_to_messages_wire_format():
    memory = ConversationMemory(max_turns=10, note_max_turns=5)
    memory.ensure_instruction("rules")
    memory.append(Turn.user("hire Bob"))
    memory.append(Turn.tool_requests_turn([
        ToolRequest(id="c1", name="add_employee", arguments={"name": "Bob", "position": "QA", "salary": 5000}),
    ]))
    memory.append(Turn.tool_result("c1", "Success! New employee ID is 1."))
    memory.append(Turn.assistant("Bob is hired."))

    messages = memory.to_messages()

    assert [m["role"] for m in messages] == ["system", "user", "assistant", "tool", "assistant"]
    call = messages[2]["tool_calls"][0]
    assert call["id"] == "c1"
    assert call["type"] == "function"
    assert call["function"]["name"] == "add_employee"
    assert json.loads(call["function"]["arguments"]) == {"name": "Bob", "position": "QA", "salary": 5000}
    assert messages[3]["tool_call_id"] == "c1"


def test_bounds_must_leave_room_for_a_turn():
    with pytest.raises(ValueError):
        ConversationMemory(max_turns=1, note_max_turns=5)


def test_store_keeps_one_memory_per_session():
    store = ConversationStore(max_turns=10, note_max_turns=5)
    default = store.get()
    assert store.get("default") is default
    assert store.get("other") is not default

    default.append(Turn.user("hi"))
    assert len(store.get("other")) == 0

    store.reset()
    assert len(store.get()) == 0
    assert sorted(store.session_ids()) == ["default", "other"]


def test_long_tool_result_run_never_leaves_a_dangling_result():
    memory = ConversationMemory(max_turns=5, note_max_turns=5)
    memory.ensure_instruction("rules")
    memory.append(Turn.user("audit everyone"))
    requests = [ToolRequest(id=f"c{i}", name="query_database", arguments={"sql": "SELECT 1"}) for i in range(8)]
    memory.append(Turn.tool_requests_turn(requests))

    for request in requests:
        memory.append(Turn.tool_result(request.id, "[]"))
        turns = memory.turns
        assert turns[0].role == TurnRole.INSTRUCTION
        assert len(turns) <= 5
        if len(turns) > 1:
            assert turns[1].role != TurnRole.TOOL_RESULT

    memory.append(Turn.assistant("nothing unusual"))
    assert roles(memory)[-1] == TurnRole.ASSISTANT
    assert TurnRole.TOOL_RESULT not in roles(memory)[:2]


def test_tool_result_without_a_request_is_dropped():
    memory = ConversationMemory(max_turns=5, note_max_turns=5)
    memory.ensure_instruction("rules")
    memory.append(Turn.user("hi"))

    memory.append(Turn.tool_result("c1", "[]"))

    assert roles(memory) == [TurnRole.INSTRUCTION, TurnRole.USER]


def test_notes_wait_while_a_run_holds_the_session():
    memory = ConversationMemory(max_turns=10, note_max_turns=8)
    memory.ensure_instruction("rules")

    async def scenario():
        async with memory.exclusive():
            memory.append(Turn.tool_requests_turn([ToolRequest(id="c1", name="query_database")]))
            memory.inject_note("Alice was fired on the dashboard")
            assert len(memory.pending_notes) == 1
            memory.append(Turn.tool_result("c1", "[]"))
        assert not memory.active

    asyncio.run(scenario())

    assert roles(memory) == [
        TurnRole.INSTRUCTION,
        TurnRole.ASSISTANT_TOOL_REQUESTS,
        TurnRole.TOOL_RESULT,
        TurnRole.SYSTEM_NOTE,
    ]
    assert memory.pending_notes == []


def test_exclusive_admits_one_coroutine_at_a_time():
    memory = ConversationMemory(max_turns=10, note_max_turns=8)
    events = []

    async def hold(name):
        async with memory.exclusive():
            events.append(f"{name} in")
            await asyncio.sleep(0.02)
            events.append(f"{name} out")

    async def both():
        await asyncio.gather(hold("a"), hold("b"))

    asyncio.run(both())

    assert events in (
        ["a in", "a out", "b in", "b out"],
        ["b in", "b out", "a in", "a out"],
    )
