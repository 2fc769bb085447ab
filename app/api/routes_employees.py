"""
Employee API routes — direct CRUD, bypassing the agent

Every successful write is also recorded in the default conversation as a
system note, so the agent can refer to edits it did not make.
"""
from flask import Blueprint, jsonify
from pydantic import ValidationError

from app.api.helpers import validate_json
from app.db import models, queries
from app.db.database import get_db
from app.agent.memory import get_conversation_store
from app.agent.types import MemoryEvent

bp = Blueprint("employees", __name__, url_prefix="/api/employees")


def record_event(action: str, employee: dict) -> None:
    get_conversation_store().get().inject_note(
        MemoryEvent(action=action, employee=queries.employee_record(employee))
    )


@bp.route("", methods=["GET"])
async def list_employees():
    db = await get_db()
    rows = await queries.list_employees(db)
    return jsonify({"success": True, "data": rows})


@bp.route("", methods=["POST"])
async def create_employee():
    try:
        employee = validate_json(models.EmployeeCreate)
    except (ValidationError, ValueError) as e:
        return jsonify({"detail": str(e)}), 400

    db = await get_db()
    record = await queries.create_employee(db, employee.name, employee.position, employee.salary)
    record_event("created", record)
    return jsonify({"success": True, "data": record}), 201


@bp.route("/<int:employee_id>", methods=["PUT"])
async def update_employee(employee_id):
    try:
        update = validate_json(models.EmployeeUpdate)
    except (ValidationError, ValueError) as e:
        return jsonify({"detail": str(e)}), 400

    fields = update.provided_fields()
    if not fields:
        return jsonify({"detail": "No fields provided"}), 400

    db = await get_db()
    changed = await queries.update_employee(db, employee_id, fields)
    if changed == 0:
        return jsonify({"detail": "Employee not found"}), 404

    record = await queries.get_employee(db, employee_id)
    record_event("updated", record)
    return jsonify({"success": True, "data": record})


@bp.route("/<int:employee_id>", methods=["DELETE"])
async def delete_employee(employee_id):
    db = await get_db()
    record = await queries.delete_employee(db, employee_id)
    if record is None:
        return jsonify({"detail": "Employee not found"}), 404

    record_event("deleted", record)
    return jsonify({"success": True, "data": record})
