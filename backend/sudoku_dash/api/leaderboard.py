from flask import Blueprint, Response, current_app, jsonify, request

from sudoku_dash.errors import ValidationError, field_error
from sudoku_dash.services import leaderboard as leaderboard_service
from sudoku_dash.services.broadcaster import StreamChannel, get_broadcaster

leaderboard = Blueprint('leaderboard', __name__)


@leaderboard.route('', methods=['GET'])
def get_leaderboard():
    raw_limit = request.args.get('limit')
    limit = None
    if raw_limit is not None:
        try:
            limit = int(raw_limit)
        except ValueError:
            raise ValidationError([field_error('limit', 'must be a non-negative integer')])
    return jsonify(leaderboard_service.get_leaderboard(limit))


@leaderboard.route('/stream', methods=['GET'])
def stream():
    """Server-sent events: one frame per leaderboard change, no payload data."""
    cfg = current_app.config
    broadcaster = get_broadcaster()
    channel = broadcaster.register(StreamChannel(maxsize=int(cfg.get('SSE_QUEUE_SIZE', 16))))
    response = Response(
        channel.events(keepalive_sec=float(cfg.get('SSE_KEEPALIVE_SEC', 15))),
        mimetype='text/event-stream',
        headers={'Cache-Control': 'no-cache', 'X-Accel-Buffering': 'no'},
    )
    # Fires when the client goes away and the WSGI server closes the response
    response.call_on_close(lambda: broadcaster.unregister(channel))
    return response
