"""
Executor — Agent execution engine (the agent loop)

Drives bounded rounds against the reasoning service:
1. Refresh the instruction turn with the live schema
2. Append the user turn
3. Ask the reasoning service for the next assistant turn
4. Final answer → done; tool requests → run them in order, append results, go to 3
5. Stop after AGENT_MAX_ROUNDS tool rounds

Whether any mutating tool ran is reported on every exit path, so callers
know to refresh cached views.
"""
from typing import Dict, Any, Optional
from enum import Enum
import logging
import time

from app.agent.memory import ConversationMemory, DEFAULT_SESSION, get_conversation_store
from app.agent.prompt import build_instruction
from app.agent.tool_registry import get_tool_registry
from app.agent.types import Turn, TurnRole
from app.config import settings

logger = logging.getLogger(__name__)

TOO_COMPLEX_REPLY = "This task is too complex. I tried too many steps and stopped."
FAILURE_REPLY = "System error: I couldn't complete that request. Please try again."
NOT_EXECUTED_TEXT = "Not executed: the step limit for this request was reached."


class AgentState(str, Enum):
    AWAITING_REASONING = "awaiting-reasoning"
    AWAITING_TOOL_RESULTS = "awaiting-tool-results"
    DONE = "done"
    ABORTED_TOO_MANY_ROUNDS = "aborted-too-many-rounds"
    ERRORED = "errored"


class AgentResult:
    """Final result from an agent run"""

    def __init__(
        self,
        reply: str,
        mutated: bool,
        state: AgentState,
        rounds: int = 0,
        session_id: str = DEFAULT_SESSION,
        latency_ms: int = 0,
    ):
        self.reply = reply
        self.mutated = mutated
        self.state = state
        self.rounds = rounds
        self.session_id = session_id
        self.latency_ms = latency_ms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reply": self.reply,
            "mutated": self.mutated,
            "state": self.state.value,
            "rounds": self.rounds,
            "session_id": self.session_id,
            "latency_ms": self.latency_ms,
        }


class AgentRunner:
    """
    Core agent execution engine.

    Orchestrates: Schema → Instruction → Reason ⇄ Tools → Reply
    """

    def __init__(
        self,
        db=None,
        provider=None,
        registry=None,
        store=None,
        max_rounds: Optional[int] = None,
    ):
        if db is None:
            from app.db.database import db
        self.db = db
        self.registry = registry or get_tool_registry()
        self.store = store or get_conversation_store()
        self.max_rounds = max_rounds or settings.AGENT_MAX_ROUNDS
        self._provider = provider

    @property
    def provider(self):
        # Resolved lazily so a missing API key fails one invocation, not import
        if self._provider is None:
            from app.orchestrator.deepseek_provider import get_deepseek_provider
            self._provider = get_deepseek_provider()
        return self._provider

    def inject_note(self, note, session_id: str = DEFAULT_SESSION) -> Turn:
        """Record an event that bypassed the agent (e.g. a direct CRUD edit)"""
        return self.store.get(session_id).inject_note(note)

    async def run(self, user_message: str, session_id: str = DEFAULT_SESSION) -> AgentResult:
        """
        Main entry point: answer one user utterance.

        Agent runs on the same session are serialized through the session
        memory's `exclusive()`; notes arriving meanwhile are flushed in
        before each reasoning call.
        """
        start_time = time.time()
        memory = self.store.get(session_id)
        state = AgentState.AWAITING_REASONING
        rounds = 0
        mutated = False

        def finish(reply: str) -> AgentResult:
            latency_ms = int((time.time() - start_time) * 1000)
            logger.info(
                f"🏁 Agent run {state.value}: {rounds} round(s) | mutated={mutated} | {latency_ms}ms"
            )
            return AgentResult(reply, mutated, state, rounds, session_id, latency_ms)

        async with memory.exclusive():
            try:
                schema = await self.db.get_schema()
                memory.ensure_instruction(build_instruction(schema, self.registry.list_names()))
                memory.flush_notes()
                memory.append(Turn.user(user_message))

                while True:
                    memory.flush_notes()
                    turn = await self.provider.complete(memory.to_messages(), self.registry.list_tools())
                    memory.append(turn)

                    if turn.role == TurnRole.ASSISTANT:
                        state = AgentState.DONE
                        return finish(turn.content)

                    if rounds + 1 > self.max_rounds:
                        self._decline_requests(memory, turn)
                        state = AgentState.ABORTED_TOO_MANY_ROUNDS
                        logger.warning(f"⚠️ Round limit {self.max_rounds} exceeded, stopping")
                        return finish(TOO_COMPLEX_REPLY)

                    rounds += 1
                    state = AgentState.AWAITING_TOOL_RESULTS
                    logger.info(f"🔄 Round {rounds}: {len(turn.tool_requests)} tool request(s)")
                    mutated = await self._run_tools(memory, turn) or mutated
                    state = AgentState.AWAITING_REASONING

            except Exception as e:
                state = AgentState.ERRORED
                logger.exception(f"Agent run failed: {type(e).__name__}: {e}")
                return finish(FAILURE_REPLY)

    async def _run_tools(self, memory: ConversationMemory, turn: Turn) -> bool:
        """
        Execute the turn's tool requests strictly in order.

        Returns True if any requested tool is a mutating one, whether or not
        it reported success.
        """
        mutated = False
        for request in turn.tool_requests:
            if self.registry.is_mutating(request.name):
                mutated = True

            logger.info(f"  🔧 {request.name} {request.arguments or request.raw_arguments}")
            result = await self.registry.execute(request)
            status = "✅" if result.success else "❌"
            logger.info(f"  {status} {request.name} done ({result.latency_ms}ms)")

            memory.append(Turn.tool_result(request.id, result.to_text()))
        return mutated

    def _decline_requests(self, memory: ConversationMemory, turn: Turn) -> None:
        """Answer unexecuted requests so the stored conversation stays well-formed"""
        for request in turn.tool_requests:
            memory.append(Turn.tool_result(request.id, NOT_EXECUTED_TEXT))


# ─── Singleton ───────────────────────────────────────────────────────────────

_runner: Optional["AgentRunner"] = None


def get_agent_runner() -> AgentRunner:
    """Get or create the global agent runner"""
    global _runner
    if _runner is None:
        _runner = AgentRunner()
    return _runner
