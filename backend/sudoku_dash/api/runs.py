from flask import Blueprint, jsonify, request

from sudoku_dash.models import isoformat_utc
from sudoku_dash.services import runs as run_service
from sudoku_dash.services.broadcaster import get_broadcaster

runs = Blueprint('runs', __name__)


@runs.route('/start', methods=['POST'])
def start_run():
    data = request.get_json(silent=True) or {}
    run = run_service.start_run(
        data.get('deviceId'),
        data.get('name'),
        data.get('consent'),
    )
    return jsonify({
        'runId': run.run_id,
        'puzzleId': run.puzzle_id,
        'startedUtc': isoformat_utc(run.started_utc),
    })


@runs.route('/submit', methods=['POST'])
def submit_run():
    data = request.get_json(silent=True) or {}
    run = run_service.submit_run(
        data.get('runId'),
        data.get('elapsedMs'),
        mistakes=data.get('mistakes', 0),
        hints=data.get('hints', 0),
        broadcaster=get_broadcaster(),
    )
    return jsonify({'success': True, 'finalMs': run.final_ms})
