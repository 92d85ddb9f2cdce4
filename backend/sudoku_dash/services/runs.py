import random
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from sudoku_dash import db
from sudoku_dash.errors import (
    ConflictError,
    NotFoundError,
    StorageFailure,
    ValidationError,
    field_error,
)
from sudoku_dash.models import Run, RUN_COMPLETED, RUN_IN_PROGRESS, utcnow
from .catalog import puzzle_ids
from .leaderboard import leaderboard_guard, upsert_if_better
from .scoring import final_ms as compute_final_ms

MAX_NAME_LENGTH = 30
MAX_DEVICE_ID_LENGTH = 255


def _pick_puzzle_id(ids: List[str]) -> str:
    return random.choice(ids)


def _is_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_start(device_id, name, consent) -> str:
    """Check start-run input and return the trimmed display name."""
    errors = []
    if isinstance(name, str):
        name = name.strip()
    if not isinstance(name, str) or not name:
        errors.append(field_error('name', 'is required'))
    elif len(name) > MAX_NAME_LENGTH:
        errors.append(field_error('name', f'must be at most {MAX_NAME_LENGTH} characters'))
    if not isinstance(consent, bool):
        errors.append(field_error('consent', 'must be a boolean'))
    if not isinstance(device_id, str) or not device_id.strip():
        errors.append(field_error('deviceId', 'is required'))
    elif len(device_id) > MAX_DEVICE_ID_LENGTH:
        errors.append(field_error('deviceId', f'must be at most {MAX_DEVICE_ID_LENGTH} characters'))
    if errors:
        raise ValidationError(errors)
    return name


def start_run(device_id, name, consent) -> Run:
    """Create an in-progress run on a randomly chosen puzzle."""
    name = validate_start(device_id, name, consent)
    ids = puzzle_ids()
    if not ids:
        raise NotFoundError('No puzzles available')
    run = Run(
        device_id=device_id,
        name=name,
        consent=consent,
        puzzle_id=_pick_puzzle_id(ids),
        started_utc=utcnow(),
        mistakes=0,
        hints=0,
        status=RUN_IN_PROGRESS,
    )
    try:
        db.session.add(run)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageFailure('Failed to start run') from exc
    current_app.logger.info(f"[run-start] run={run.run_id} puzzle={run.puzzle_id} name={run.name!r}")
    return run


def get_run(run_id) -> Optional[Run]:
    if not isinstance(run_id, str) or not run_id:
        return None
    try:
        return db.session.get(Run, run_id)
    except SQLAlchemyError as exc:
        raise StorageFailure('Failed to fetch run') from exc


def check_timing(run: Run, elapsed_ms: int, now) -> int:
    """Log a warning when the reported time drifts from the server's clock.

    Only observes; the client-reported value is still what gets scored.
    Returns the server-side elapsed milliseconds.
    """
    server_elapsed_ms = int((now - run.started_utc).total_seconds() * 1000)
    threshold = int(current_app.config.get('TIMING_ANOMALY_THRESHOLD_MS', 5000))
    if abs(server_elapsed_ms - elapsed_ms) > threshold:
        current_app.logger.warning(
            f"[timing-anomaly] run={run.run_id} server={server_elapsed_ms} client={elapsed_ms}"
        )
    return server_elapsed_ms


def submit_run(run_id, elapsed_ms, mistakes=0, hints=0, broadcaster=None) -> Run:
    """Complete a run: score it, store it and update the player's best.

    The run update and the leaderboard upsert commit together. Listeners are
    notified only after the commit succeeds.
    """
    run = get_run(run_id)
    if run is None:
        raise NotFoundError('Run not found')

    errors = []
    if not _is_count(elapsed_ms):
        errors.append(field_error('elapsedMs', 'must be a non-negative integer'))
    if not _is_count(mistakes):
        errors.append(field_error('mistakes', 'must be a non-negative integer'))
    if not _is_count(hints):
        errors.append(field_error('hints', 'must be a non-negative integer'))
    if errors:
        raise ValidationError(errors)

    if run.status == RUN_COMPLETED and current_app.config.get('REJECT_RUN_RESUBMISSION'):
        raise ConflictError('Run already submitted')

    now = utcnow()
    check_timing(run, elapsed_ms, now)
    final = compute_final_ms(elapsed_ms, mistakes, hints)

    with leaderboard_guard(run.name):
        try:
            run.elapsed_ms = elapsed_ms
            run.mistakes = mistakes
            run.hints = hints
            run.final_ms = final
            run.finished_utc = now
            run.status = RUN_COMPLETED
            db.session.add(run)
            db.session.flush()
            upsert_if_better(run.name, run.run_id, final, now)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageFailure('Failed to submit run') from exc

    current_app.logger.info(
        f"[run-submit] run={run.run_id} elapsed={elapsed_ms} mistakes={mistakes} hints={hints} final={final}"
    )
    if broadcaster is not None:
        broadcaster.broadcast_leaderboard_update()
    return run
