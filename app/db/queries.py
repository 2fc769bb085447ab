"""
Database query functions - employees table operations
"""
from typing import Optional, List, Dict, Any

EMPLOYEE_COLUMNS = "id, name, position, salary, created_at"

# Fields a partial update is allowed to touch, in statement order
UPDATABLE_FIELDS = ("name", "position", "salary")


def employee_record(row: Dict[str, Any]) -> Dict[str, Any]:
    """Core fields of an employee row (what undo needs to recreate it)"""
    return {
        "id": row["id"],
        "name": row["name"],
        "position": row["position"],
        "salary": row["salary"],
    }


# ===== Read Queries =====

async def list_employees(db) -> List[Dict]:
    """All employees, newest first"""
    return await db.fetch_all(
        f"SELECT {EMPLOYEE_COLUMNS} FROM employees ORDER BY created_at DESC, id DESC"
    )


async def get_employee(db, employee_id: int) -> Optional[Dict]:
    """Get employee by ID"""
    rows = await db.fetch_all(
        f"SELECT {EMPLOYEE_COLUMNS} FROM employees WHERE id = ?", (employee_id,)
    )
    return rows[0] if rows else None


async def run_read_query(db, sql: str) -> List[Dict]:
    """Run caller-supplied SQL on a connection that refuses writes"""
    return await db.fetch_all(sql, read_only=True)


# ===== Write Queries =====

async def create_employee(db, name: str, position: str, salary: float) -> Dict:
    """Insert one employee and return the stored record"""
    result = await db.execute(
        "INSERT INTO employees (name, position, salary) VALUES (?, ?, ?)",
        (name, position, salary),
    )
    return {"id": result.lastrowid, "name": name, "position": position, "salary": salary}


async def update_employee(db, employee_id: int, fields: Dict[str, Any]) -> int:
    """
    Apply a partial update in one statement.

    Only keys in UPDATABLE_FIELDS are written. Returns the number of rows
    changed; 0 means the id matched nothing. Callers must not pass an
    empty `fields`.
    """
    columns = [f for f in UPDATABLE_FIELDS if f in fields]
    if not columns:
        raise ValueError("update_employee requires at least one field")

    assignments = ", ".join(f"{column} = ?" for column in columns)
    params = [fields[column] for column in columns] + [employee_id]
    result = await db.execute(f"UPDATE employees SET {assignments} WHERE id = ?", params)
    return result.rowcount


async def delete_employee(db, employee_id: int) -> Optional[Dict]:
    """Delete one employee by ID, returning the deleted record (None if missing)"""
    async with db.acquire() as conn:
        async with conn.execute(
            f"SELECT {EMPLOYEE_COLUMNS} FROM employees WHERE id = ?", (employee_id,)
        ) as cursor:
            row = await cursor.fetchone()
        if row is None:
            return None
        await conn.execute("DELETE FROM employees WHERE id = ?", (employee_id,))
    return employee_record(dict(row))


async def delete_employees_by_name(db, name: str) -> List[Dict]:
    """
    Resolve every employee with this name and delete them by ID.

    Lookup and delete share one transaction. Returns the deleted records,
    empty when nobody matched (nothing is written in that case).
    """
    async with db.acquire() as conn:
        async with conn.execute(
            f"SELECT {EMPLOYEE_COLUMNS} FROM employees WHERE name = ? ORDER BY id", (name,)
        ) as cursor:
            rows = [dict(row) for row in await cursor.fetchall()]
        if not rows:
            return []

        ids = [row["id"] for row in rows]
        placeholders = ", ".join("?" for _ in ids)
        await conn.execute(f"DELETE FROM employees WHERE id IN ({placeholders})", ids)

    return [employee_record(row) for row in rows]
