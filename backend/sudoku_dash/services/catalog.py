from typing import Dict, List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from sudoku_dash import db
from sudoku_dash.errors import NotFoundError, StorageFailure, ValidationError, field_error
from sudoku_dash.models import Puzzle

GRID_SIZE = 9
CELL_COUNT = GRID_SIZE * GRID_SIZE
EMPTY_MARKERS = ('.', '0')

PUZZLES = [
    {
        'id': 'E01',
        'puzzle_string': '4.8.19.6...3764...612..87..2.6...9759..64.82118.9.2..482.4.....7..53......98...16',
        'solution_string': '478219563593764182612358749246183975937645821185972634821496357764531298359827416',
    },
    {
        'id': 'E02',
        'puzzle_string': '14....7..59.7.8....87.69.......8164..79.3..2....6....3.24.95.76.31846.5.9653274..',
        'solution_string': '146253789593718264287469135352981647679534821418672593824195376731846952965327418',
    },
    {
        'id': 'E03',
        'puzzle_string': '9..12467..7.39.1.5.....72.9.5748..62.....1.8.4.....95.78.6.35...43..281.6..84.7.3',
        'solution_string': '935124678276398145814567239157489362369251487428736951782613594543972816691845723',
    },
]


def check_puzzle(puzzle_string: str, solution_string: str) -> None:
    """Raise ValueError unless the pair is a well-formed 9x9 puzzle and solution."""
    if len(puzzle_string) != CELL_COUNT or len(solution_string) != CELL_COUNT:
        raise ValueError(
            f"puzzle and solution must be {CELL_COUNT} characters "
            f"(got {len(puzzle_string)} and {len(solution_string)})"
        )
    if any(ch not in '123456789' for ch in solution_string):
        raise ValueError('solution may only contain digits 1-9')
    for idx, (given, solved) in enumerate(zip(puzzle_string, solution_string)):
        if given in EMPTY_MARKERS:
            continue
        if given != solved:
            raise ValueError(f"given {given!r} at cell {idx} disagrees with solution {solved!r}")


def seed_puzzles(puzzles=None) -> int:
    """Insert any catalog puzzle whose id is not stored yet. Existing rows are left alone."""
    puzzles = PUZZLES if puzzles is None else puzzles
    inserted = 0
    try:
        for data in puzzles:
            check_puzzle(data['puzzle_string'], data['solution_string'])
            if db.session.get(Puzzle, data['id']) is not None:
                continue
            db.session.add(Puzzle(**data))
            inserted += 1
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageFailure('Failed to seed puzzles') from exc
    current_app.logger.info(f"[seed] inserted={inserted} total={len(puzzles)}")
    return inserted


def list_puzzles() -> List[Dict[str, str]]:
    try:
        puzzles = Puzzle.query.order_by(Puzzle.id.asc()).all()
    except SQLAlchemyError as exc:
        raise StorageFailure('Failed to fetch puzzles') from exc
    return [p.to_dict() for p in puzzles]


def puzzle_ids() -> List[str]:
    try:
        return [row.id for row in db.session.query(Puzzle.id).order_by(Puzzle.id.asc()).all()]
    except SQLAlchemyError as exc:
        raise StorageFailure('Failed to fetch puzzles') from exc


def get_puzzle(puzzle_id) -> Optional[Puzzle]:
    """Full record including the solution. Server-side use only."""
    if not isinstance(puzzle_id, str) or not puzzle_id:
        return None
    try:
        return db.session.get(Puzzle, puzzle_id)
    except SQLAlchemyError as exc:
        raise StorageFailure('Failed to fetch puzzle') from exc


def _require_puzzle(puzzle_id) -> Puzzle:
    puzzle = get_puzzle(puzzle_id)
    if puzzle is None:
        raise NotFoundError('Puzzle not found')
    return puzzle


def _in_range(value, low, high) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and low <= value <= high


def validate_cell(puzzle_id, row, col, value) -> bool:
    """Compare a single entry with the stored solution.

    Only the cell's own position is consulted; the player's other entries are
    never needed. Anything out of range is just wrong.
    """
    puzzle = _require_puzzle(puzzle_id)
    if not (_in_range(row, 0, GRID_SIZE - 1) and _in_range(col, 0, GRID_SIZE - 1) and _in_range(value, 1, 9)):
        return False
    return puzzle.solution_string[row * GRID_SIZE + col] == str(value)


def find_hint(puzzle_id, grid) -> Optional[Dict[str, int]]:
    """Reveal the first empty, non-given cell of the player's current grid."""
    puzzle = _require_puzzle(puzzle_id)
    if not isinstance(grid, str) or len(grid) != CELL_COUNT:
        raise ValidationError([field_error('grid', f'must be a {CELL_COUNT} character string')])
    for idx, ch in enumerate(grid):
        if ch not in EMPTY_MARKERS or puzzle.puzzle_string[idx] not in EMPTY_MARKERS:
            continue
        row, col = divmod(idx, GRID_SIZE)
        return {'row': row, 'col': col, 'value': int(puzzle.solution_string[idx])}
    return None
