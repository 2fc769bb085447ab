"""
Agent API routes — conversational endpoints

Endpoints:
- POST   /api/chat          Send an utterance to the agent
- POST   /api/chat/notes    Inject an external event as a system note
- GET    /api/chat/memory   Current conversation turns for a session
- DELETE /api/chat/memory   Forget a session's conversation
- GET    /api/chat/tools    The tool catalog the agent offers the model
"""
import logging

from flask import Blueprint, request, jsonify
from pydantic import ValidationError

from app.api.helpers import validate_json
from app.db import models
from app.db.database import get_db
from app.agent.executor import AgentState, FAILURE_REPLY, get_agent_runner
from app.agent.memory import DEFAULT_SESSION, get_conversation_store
from app.agent.tool_registry import get_tool_registry

logger = logging.getLogger(__name__)

bp = Blueprint("agent", __name__, url_prefix="/api/chat")


@bp.route("", methods=["POST"])
async def chat():
    """
    Send a message to the agent.

    Body: {"message": "...", "session_id": "optional"}
    Returns: {"success", "reply", "mutated", "state", "rounds", "session_id"}
    """
    try:
        chat_request = validate_json(models.ChatRequest)
    except (ValidationError, ValueError) as e:
        return jsonify({"detail": f"Missing or invalid 'message': {e}"}), 400

    try:
        await get_db()
    except Exception as e:
        logger.exception(f"Database unavailable for chat: {type(e).__name__}: {e}")
        response = models.ChatResponse(
            reply=FAILURE_REPLY,
            mutated=False,
            state=AgentState.ERRORED.value,
            rounds=0,
            session_id=chat_request.session_id,
        )
        return jsonify(response.model_dump())

    runner = get_agent_runner()
    result = await runner.run(chat_request.message, session_id=chat_request.session_id)

    response = models.ChatResponse(
        reply=result.reply,
        mutated=result.mutated,
        state=result.state.value,
        rounds=result.rounds,
        session_id=result.session_id,
    )
    return jsonify(response.model_dump())


@bp.route("/notes", methods=["POST"])
async def inject_note():
    """Record something that happened outside the agent"""
    try:
        note_request = validate_json(models.NoteRequest)
    except (ValidationError, ValueError) as e:
        return jsonify({"detail": str(e)}), 400

    memory = get_conversation_store().get(note_request.session_id)
    turn = memory.inject_note(note_request.event)
    return jsonify({"success": True, "note": turn.to_dict(), "count": len(memory)}), 201


@bp.route("/memory", methods=["GET"])
async def get_memory():
    """Get session memory/conversation history"""
    session_id = request.args.get("session_id", DEFAULT_SESSION)
    turns = get_conversation_store().get(session_id).snapshot()
    response = models.MemoryResponse(session_id=session_id, turns=turns, count=len(turns))
    return jsonify(response.model_dump())


@bp.route("/memory", methods=["DELETE"])
async def clear_memory():
    session_id = request.args.get("session_id", DEFAULT_SESSION)
    get_conversation_store().reset(session_id)
    return jsonify({"success": True, "session_id": session_id})


@bp.route("/tools", methods=["GET"])
async def list_tools():
    """List all registered agent tools"""
    registry = get_tool_registry()
    return jsonify({
        "tools": registry.list_tools(),
        "count": registry.count(),
    })
