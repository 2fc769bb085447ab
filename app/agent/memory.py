"""
Conversation Memory — process-wide turn log for the agent

Turn 0 is the pinned instruction; the rest is a sliding window capped at
MEMORY_MAX_TURNS. Nothing is persisted: memory lives as long as the process.
"""
from contextlib import asynccontextmanager
from typing import Dict, Any, List, Optional, Union
import asyncio
import logging
import threading

from app.agent.types import Turn, TurnRole, MemoryEvent
from app.config import settings

logger = logging.getLogger(__name__)

DEFAULT_SESSION = "default"

# How often a waiting agent run re-checks the session's run lock
RUN_LOCK_POLL_SECONDS = 0.01


class ConversationMemory:
    """
    Ordered log of conversation turns for one session.

    `lock` guards the turn list and is only held for a single mutation.
    A whole agent invocation runs inside `exclusive()`, which admits one
    run at a time whether the callers share an event loop or each run on
    their own thread. Notes injected while a run is active are queued and
    flushed by the run at its next reasoning call, so they never split a
    tool-request turn from its tool results.
    """

    def __init__(
        self,
        max_turns: Optional[int] = None,
        note_max_turns: Optional[int] = None,
    ):
        self.max_turns = max_turns or settings.MEMORY_MAX_TURNS
        self.note_max_turns = note_max_turns or settings.MEMORY_NOTE_MAX_TURNS
        if self.max_turns < 2 or self.note_max_turns < 2:
            raise ValueError("Memory bounds must keep the instruction plus at least one turn")
        self.lock = threading.RLock()
        self._run_lock = threading.Lock()
        self._active = False
        self._pending_notes: List[Turn] = []
        self._turns: List[Turn] = []

    def __len__(self) -> int:
        return len(self._turns)

    @property
    def turns(self) -> List[Turn]:
        """Copy of the current turns, oldest first"""
        with self.lock:
            return list(self._turns)

    @property
    def active(self) -> bool:
        return self._active

    @property
    def pending_notes(self) -> List[Turn]:
        with self.lock:
            return list(self._pending_notes)

    @asynccontextmanager
    async def exclusive(self):
        """
        Hold this session for one agent invocation.

        The run lock is a plain thread lock taken without blocking, so
        coroutines on one loop and requests on separate threads both wait
        their turn without stalling an event loop.
        """
        while not self._run_lock.acquire(blocking=False):
            await asyncio.sleep(RUN_LOCK_POLL_SECONDS)
        with self.lock:
            self._active = True
        try:
            yield self
        finally:
            with self.lock:
                self._active = False
                self.flush_notes()
            self._run_lock.release()

    def ensure_instruction(self, text: str) -> None:
        """Insert the instruction as Turn 0, or overwrite the existing one"""
        with self.lock:
            if self._turns and self._turns[0].role == TurnRole.INSTRUCTION:
                self._turns[0].content = text
            else:
                self._turns.insert(0, Turn.instruction(text))

    def append(self, turn: Turn) -> None:
        """
        Add a turn at the end and apply the main window bound.

        A tool result whose requesting turn was already evicted is dropped
        rather than left dangling behind the instruction.
        """
        with self.lock:
            if turn.role == TurnRole.TOOL_RESULT and not self._follows_requests():
                logger.debug(f"Dropped tool result {turn.correlates_to}: its request was evicted")
                return
            self._turns.append(turn)
            if len(self._turns) > self.max_turns:
                self.trim(self.max_turns)

    def _follows_requests(self) -> bool:
        if not self._turns:
            return False
        return self._turns[-1].role in (TurnRole.ASSISTANT_TOOL_REQUESTS, TurnRole.TOOL_RESULT)

    def inject_note(self, note: Union[str, MemoryEvent]) -> Turn:
        """
        Record an out-of-band event (e.g. a direct CRUD edit) as a system note.

        Uses the smaller note bound so a burst of external events cannot
        grow the window past what the agent would keep. While an agent run
        holds the session the note waits in a queue.
        """
        turn = Turn.note(note)
        with self.lock:
            if self._active:
                self._pending_notes.append(turn)
                logger.info(f"📝 System note queued until the running turn settles: {turn.text[:120]}")
                return turn
            self._add_note(turn)
        logger.info(f"📝 System note injected: {turn.text[:120]}")
        return turn

    def flush_notes(self) -> int:
        """Move queued notes into the log; returns how many were added"""
        with self.lock:
            pending, self._pending_notes = self._pending_notes, []
            for turn in pending:
                self._add_note(turn)
        if pending:
            logger.info(f"📝 Flushed {len(pending)} queued system note(s)")
        return len(pending)

    def _add_note(self, turn: Turn) -> None:
        self._turns.append(turn)
        if len(self._turns) > self.note_max_turns:
            self.trim(self.note_max_turns)

    def trim(self, bound: int) -> None:
        """
        Keep the pinned instruction plus the newest `bound - 1` turns.

        A retained suffix never starts with a tool result: the assistant
        turn that requested it was evicted, so the result is dropped too.
        """
        with self.lock:
            if not self._turns:
                return

            if self._turns[0].role == TurnRole.INSTRUCTION:
                pinned, rest = [self._turns[0]], self._turns[1:]
                keep = bound - 1
            else:
                pinned, rest = [], self._turns
                keep = bound

            if len(rest) <= keep:
                return

            suffix = rest[len(rest) - keep:] if keep > 0 else []
            while suffix and suffix[0].role == TurnRole.TOOL_RESULT:
                suffix = suffix[1:]

            evicted = len(self._turns) - len(pinned) - len(suffix)
            self._turns = pinned + suffix
            logger.debug(f"Memory trimmed: {evicted} turns evicted, {len(self._turns)} kept")

    def to_messages(self) -> List[Dict[str, Any]]:
        """Render the whole log in chat-completions wire format"""
        with self.lock:
            return [turn.to_message() for turn in self._turns]

    def snapshot(self) -> List[Dict[str, Any]]:
        """JSON-friendly copy of the log (for the memory endpoint)"""
        with self.lock:
            return [turn.to_dict() for turn in self._turns]

    def clear(self) -> None:
        """Forget all turns, queued notes included"""
        with self.lock:
            self._turns.clear()
            self._pending_notes.clear()


class ConversationStore:
    """Keyed map of per-session memories, created lazily"""

    def __init__(self, max_turns: Optional[int] = None, note_max_turns: Optional[int] = None):
        self.max_turns = max_turns
        self.note_max_turns = note_max_turns
        self._sessions: Dict[str, ConversationMemory] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str = DEFAULT_SESSION) -> ConversationMemory:
        """Get or create the memory for a session"""
        with self._lock:
            memory = self._sessions.get(session_id)
            if memory is None:
                memory = ConversationMemory(self.max_turns, self.note_max_turns)
                self._sessions[session_id] = memory
                logger.info(f"🧠 New conversation memory for session '{session_id}'")
            return memory

    def session_ids(self) -> List[str]:
        with self._lock:
            return list(self._sessions.keys())

    def reset(self, session_id: str = DEFAULT_SESSION) -> None:
        """Drop a session's memory; the next use starts fresh"""
        with self._lock:
            self._sessions.pop(session_id, None)


# ─── Singleton ───────────────────────────────────────────────────────────────

_store: Optional[ConversationStore] = None


def get_conversation_store() -> ConversationStore:
    """Get or create the global conversation store"""
    global _store
    if _store is None:
        _store = ConversationStore()
    return _store
