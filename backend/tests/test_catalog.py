import pytest

from sudoku_dash.models import Puzzle
from sudoku_dash.services.catalog import PUZZLES, check_puzzle, seed_puzzles

E01_SOLUTION = PUZZLES[0]['solution_string']


def test_seed_data_is_well_formed():
    for data in PUZZLES:
        check_puzzle(data['puzzle_string'], data['solution_string'])


def test_check_puzzle_rejects_short_or_inconsistent_pairs():
    with pytest.raises(ValueError):
        check_puzzle('1' * 80, '1' * 81)
    # First given disagrees with the solution
    bad = '5' + PUZZLES[0]['puzzle_string'][1:]
    with pytest.raises(ValueError):
        check_puzzle(bad, E01_SOLUTION)


def test_seed_is_idempotent(flask_app):
    # conftest already seeded once
    assert seed_puzzles() == 0
    assert seed_puzzles() == 0
    ids = sorted(p.id for p in Puzzle.query.all())
    assert ids == ['E01', 'E02', 'E03']


def test_seed_never_overwrites(flask_app):
    from sudoku_dash import db
    puzzle = db.session.get(Puzzle, 'E01')
    original = puzzle.puzzle_string
    changed = [dict(PUZZLES[0], puzzle_string='.' * 81)]
    assert seed_puzzles(changed) == 0
    db.session.expire_all()
    assert db.session.get(Puzzle, 'E01').puzzle_string == original


def test_list_puzzles_hides_solutions(client):
    res = client.get('/api/puzzles')
    assert res.status_code == 200
    puzzles = res.get_json()
    assert [p['id'] for p in puzzles] == ['E01', 'E02', 'E03']
    for p in puzzles:
        assert set(p.keys()) == {'id', 'puzzleString'}
        assert len(p['puzzleString']) == 81


def test_validate_cell_correct_and_incorrect(client):
    # Row 0, col 1 is empty in E01; the solution digit there is 7
    correct = int(E01_SOLUTION[1])
    res = client.post('/api/validate', json={'puzzleId': 'E01', 'row': 0, 'col': 1, 'value': correct})
    assert res.status_code == 200
    assert res.get_json() == {'valid': True}
    for other in range(1, 10):
        if other == correct:
            continue
        res = client.post('/api/validate', json={'puzzleId': 'E01', 'row': 0, 'col': 1, 'value': other})
        assert res.get_json() == {'valid': False}


def test_validate_cell_uses_position_only(client):
    # Last cell of E01
    res = client.post('/api/validate', json={'puzzleId': 'E01', 'row': 8, 'col': 8, 'value': int(E01_SOLUTION[80])})
    assert res.get_json() == {'valid': True}


@pytest.mark.parametrize('row,col,value', [
    (9, 0, 4), (-1, 0, 4), (0, 9, 4), (0, -1, 4), (0, 0, 0), (0, 0, 10), ('0', 0, 4), (0, 0, '4'), (None, 0, 4),
])
def test_validate_cell_out_of_range_is_invalid(client, row, col, value):
    res = client.post('/api/validate', json={'puzzleId': 'E01', 'row': row, 'col': col, 'value': value})
    assert res.status_code == 200
    assert res.get_json() == {'valid': False}


def test_validate_cell_unknown_puzzle(client):
    res = client.post('/api/validate', json={'puzzleId': 'NOPE', 'row': 0, 'col': 0, 'value': 4})
    assert res.status_code == 404
    res = client.post('/api/validate', json={'row': 0, 'col': 0, 'value': 4})
    assert res.status_code == 404


def test_hint_reveals_first_empty_non_given_cell(client):
    grid = PUZZLES[0]['puzzle_string']
    res = client.post('/api/hint', json={'puzzleId': 'E01', 'grid': grid})
    assert res.status_code == 200
    assert res.get_json()['hint'] == {'row': 0, 'col': 1, 'value': int(E01_SOLUTION[1])}

    # Fill that cell; the next empty one is (0, 3)
    filled = grid[0] + E01_SOLUTION[1] + grid[2:]
    hint = client.post('/api/hint', json={'puzzleId': 'E01', 'grid': filled}).get_json()['hint']
    assert hint == {'row': 0, 'col': 3, 'value': int(E01_SOLUTION[3])}


def test_hint_accepts_zero_as_empty(client):
    grid = PUZZLES[0]['puzzle_string'].replace('.', '0')
    hint = client.post('/api/hint', json={'puzzleId': 'E01', 'grid': grid}).get_json()['hint']
    assert hint['row'] == 0 and hint['col'] == 1


def test_hint_on_full_grid_is_null(client):
    res = client.post('/api/hint', json={'puzzleId': 'E01', 'grid': E01_SOLUTION})
    assert res.get_json() == {'hint': None}


def test_hint_errors(client):
    assert client.post('/api/hint', json={'puzzleId': 'NOPE', 'grid': E01_SOLUTION}).status_code == 404
    res = client.post('/api/hint', json={'puzzleId': 'E01', 'grid': '123'})
    assert res.status_code == 400
    assert res.get_json()['errors'][0]['field'] == 'grid'
