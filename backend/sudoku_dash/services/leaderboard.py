import math
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Dict, List

from flask import current_app
from sqlalchemy import and_, distinct, func, or_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from sudoku_dash import db
from sudoku_dash.errors import StorageFailure, ValidationError, field_error
from sudoku_dash.models import LeaderboardEntry, Run, RUN_COMPLETED

# Dialects whose INSERT supports ON CONFLICT ... DO UPDATE ... WHERE
_UPSERT_INSERTS = {
    'sqlite': sqlite_insert,
    'postgresql': pg_insert,
}

# name -> [lock, holders]; a slot lives only while someone holds or waits on it
_name_locks: Dict[str, list] = {}
_name_locks_guard = threading.Lock()


def _native_insert():
    return _UPSERT_INSERTS.get(db.session.get_bind().dialect.name)


@contextmanager
def leaderboard_guard(name: str):
    """Serialize leaderboard writes for ``name`` in this process until the block exits.

    Dialects with a conditional upsert need nothing here. For the others the
    caller keeps the block open across its commit, so two submissions for the
    same name cannot interleave their read and their write.
    """
    if _native_insert() is not None:
        yield
        return
    with _name_locks_guard:
        slot = _name_locks.setdefault(name, [threading.RLock(), 0])
        slot[1] += 1
    try:
        with slot[0]:
            yield
    finally:
        with _name_locks_guard:
            slot[1] -= 1
            if slot[1] == 0:
                del _name_locks[name]


def is_better(final_ms: int, finished_utc: datetime, best_final_ms: int, best_finished_utc: datetime) -> bool:
    return final_ms < best_final_ms or (final_ms == best_final_ms and finished_utc < best_finished_utc)


def get_leaderboard(limit=None) -> List[dict]:
    if limit is None:
        limit = int(current_app.config.get('LEADERBOARD_DEFAULT_LIMIT', 1000))
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
        raise ValidationError([field_error('limit', 'must be a non-negative integer')])
    try:
        entries = (
            LeaderboardEntry.query
            .order_by(
                LeaderboardEntry.best_final_ms.asc(),
                LeaderboardEntry.best_finished_utc.asc(),
                LeaderboardEntry.name.asc(),
            )
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as exc:
        raise StorageFailure('Failed to fetch leaderboard') from exc
    return [e.to_dict() for e in entries]


def upsert_if_better(name: str, run_id: str, final_ms: int, finished_utc: datetime) -> bool:
    """Record a completed run as ``name``'s best if it beats the stored one.

    Lower final time wins; on equal times the earlier finish wins. On SQLite
    and PostgreSQL the comparison happens inside the storage layer in one
    statement. Elsewhere it is a locked read then a write, and callers that
    commit later must hold :func:`leaderboard_guard` until they do. The
    caller owns the transaction. Returns True when the entry changed.
    """
    insert = _native_insert()
    if insert is None:
        changed = _locked_upsert(name, run_id, final_ms, finished_utc)
    else:
        table = LeaderboardEntry.__table__
        stmt = insert(table).values(
            name=name,
            best_run_id=run_id,
            best_final_ms=final_ms,
            best_finished_utc=finished_utc,
        )
        excluded = stmt.excluded
        stmt = stmt.on_conflict_do_update(
            index_elements=[table.c.name],
            set_={
                'best_run_id': excluded.best_run_id,
                'best_final_ms': excluded.best_final_ms,
                'best_finished_utc': excluded.best_finished_utc,
            },
            where=or_(
                excluded.best_final_ms < table.c.best_final_ms,
                and_(
                    excluded.best_final_ms == table.c.best_final_ms,
                    excluded.best_finished_utc < table.c.best_finished_utc,
                ),
            ),
        )
        changed = db.session.connection().execute(stmt).rowcount > 0
    current_app.logger.info(f"[leaderboard-upsert] name={name!r} run={run_id} final_ms={final_ms} changed={changed}")
    return changed


def _locked_entry(name):
    return (
        LeaderboardEntry.query
        .filter_by(name=name)
        .with_for_update()
        .populate_existing()
        .first()
    )


def _locked_upsert(name, run_id, final_ms, finished_utc) -> bool:
    # Row lock for other processes, per-name lock for threads sharing this one
    with leaderboard_guard(name):
        entry = _locked_entry(name)
        if entry is None:
            try:
                with db.session.begin_nested():
                    db.session.add(LeaderboardEntry(
                        name=name,
                        best_run_id=run_id,
                        best_final_ms=final_ms,
                        best_finished_utc=finished_utc,
                    ))
                    db.session.flush()
                return True
            except IntegrityError:
                # Another process inserted first; compare against its row
                entry = _locked_entry(name)
        if not is_better(final_ms, finished_utc, entry.best_final_ms, entry.best_finished_utc):
            return False
        entry.best_run_id = run_id
        entry.best_final_ms = final_ms
        entry.best_finished_utc = finished_utc
        db.session.flush()
        return True


def clear_all(broadcaster=None) -> None:
    """Delete every leaderboard entry and every run. Puzzles are kept."""
    try:
        deleted_entries = LeaderboardEntry.query.delete()
        deleted_runs = Run.query.delete()
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageFailure('Failed to reset leaderboard') from exc
    current_app.logger.warning(f"[admin-reset] entries={deleted_entries} runs={deleted_runs}")
    if broadcaster is not None:
        broadcaster.broadcast_leaderboard_update()


def get_stats() -> dict:
    try:
        completed, players, avg = (
            db.session.query(
                func.count(Run.run_id),
                func.count(distinct(Run.name)),
                func.avg(Run.final_ms),
            )
            .filter(Run.status == RUN_COMPLETED)
            .one()
        )
    except SQLAlchemyError as exc:
        raise StorageFailure('Failed to fetch stats') from exc
    return {
        'completedRuns': int(completed or 0),
        'distinctPlayers': int(players or 0),
        # round half up
        'avgFinalMs': int(math.floor(float(avg) + 0.5)) if avg is not None else 0,
    }
