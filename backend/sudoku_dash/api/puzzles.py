from flask import Blueprint, jsonify, request

from sudoku_dash.services import catalog

puzzles = Blueprint('puzzles', __name__)


@puzzles.route('/puzzles', methods=['GET'])
def list_puzzles():
    # Solutions are never part of this listing
    return jsonify(catalog.list_puzzles())


@puzzles.route('/validate', methods=['POST'])
def validate_cell():
    data = request.get_json(silent=True) or {}
    valid = catalog.validate_cell(
        data.get('puzzleId'),
        data.get('row'),
        data.get('col'),
        data.get('value'),
    )
    return jsonify({'valid': valid})


@puzzles.route('/hint', methods=['POST'])
def hint():
    data = request.get_json(silent=True) or {}
    return jsonify({'hint': catalog.find_hint(data.get('puzzleId'), data.get('grid'))})
