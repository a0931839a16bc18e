from __future__ import annotations

from typing import Iterable, Type

from sqlalchemy import DDL, event, inspect

from bidflow.core.errors import AppendOnlyViolation


def append_only(model: Type, *, frozen_columns: Iterable[str]) -> None:
    """
    Make a mapped table insert-only.

    ORM level: any flush that would UPDATE or DELETE a persisted row raises.
    SQLite level: triggers abort UPDATE of the frozen columns and any DELETE,
    so raw SQL can't rewrite history either. Columns not listed stay
    writable for the database itself (e.g. ON DELETE SET NULL on a weak
    back reference).
    """
    table = model.__table__
    frozen = list(frozen_columns)

    @event.listens_for(model, "before_update")
    def _no_update(mapper, connection, target):
        state = inspect(target)
        changed = [a.key for a in state.attrs if a.history.has_changes()]
        if changed:
            raise AppendOnlyViolation(
                f"{table.name} is append-only: UPDATE is not allowed",
                table=table.name,
                columns=changed,
            )

    @event.listens_for(model, "before_delete")
    def _no_delete(mapper, connection, target):
        raise AppendOnlyViolation(
            f"{table.name} is append-only: DELETE is not allowed",
            table=table.name,
        )

    event.listen(
        table,
        "after_create",
        DDL(
            f"""
            CREATE TRIGGER IF NOT EXISTS trg_{table.name}_no_update
            BEFORE UPDATE OF {", ".join(frozen)} ON {table.name}
            BEGIN
                SELECT RAISE(ABORT, '{table.name} is append-only: UPDATE is not allowed');
            END;
            """
        ).execute_if(dialect="sqlite"),
    )
    event.listen(
        table,
        "after_create",
        DDL(
            f"""
            CREATE TRIGGER IF NOT EXISTS trg_{table.name}_no_delete
            BEFORE DELETE ON {table.name}
            BEGIN
                SELECT RAISE(ABORT, '{table.name} is append-only: DELETE is not allowed');
            END;
            """
        ).execute_if(dialect="sqlite"),
    )
