from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required, login_user, logout_user

from sudoku_dash.models import AdminUser
from sudoku_dash.services import leaderboard as leaderboard_service
from sudoku_dash.services.broadcaster import get_broadcaster

admin = Blueprint('admin', __name__)


@admin.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or {}
    user = AdminUser.query.filter_by(username=data.get('username')).first()
    if user and user.check_password(data.get('password') or ''):
        login_user(user)
        return jsonify({'success': True, 'user': user.to_dict()})
    return jsonify({'success': False, 'message': 'Invalid credentials'}), 401


@admin.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@admin.route('/me', methods=['GET'])
@login_required
def me():
    # With LOGIN_DISABLED the anonymous user gets through
    user = current_user.to_dict() if current_user.is_authenticated else None
    return jsonify({'success': True, 'user': user})


@admin.route('/reset', methods=['POST'])
@login_required
def reset():
    # Irreversible: every run and leaderboard entry is deleted
    leaderboard_service.clear_all(broadcaster=get_broadcaster())
    return jsonify({'success': True})


@admin.route('/stats', methods=['GET'])
@login_required
def stats():
    return jsonify(leaderboard_service.get_stats())
