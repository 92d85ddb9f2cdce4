"""Fan-out of "leaderboard changed" notifications to connected viewers.

Listeners are either Socket.IO sessions on the ``/leaderboard`` namespace or
SSE responses on ``/api/leaderboard/stream``. Notifications carry no data;
viewers re-fetch the leaderboard when they get one. Nothing is buffered for
listeners that connect later.
"""
import json
import queue
import threading
from typing import List, Set

from flask import current_app

UPDATE_EVENT = 'leaderboardUpdated'
UPDATE_PAYLOAD = {'type': UPDATE_EVENT}
LEADERBOARD_NAMESPACE = '/leaderboard'
EXTENSION_KEY = 'leaderboard_broadcaster'


class ChannelClosed(Exception):
    pass


class SocketIOChannel:
    """A connected Socket.IO session, addressed by its sid."""

    def __init__(self, socketio, sid, namespace=LEADERBOARD_NAMESPACE):
        self.socketio = socketio
        self.sid = sid
        self.namespace = namespace

    def send(self, payload):
        self.socketio.emit(UPDATE_EVENT, payload, to=self.sid, namespace=self.namespace)

    def __repr__(self):
        return f"<SocketIOChannel sid={self.sid}>"


class StreamChannel:
    """An SSE response fed through a bounded queue.

    ``send`` never blocks: a listener that stops draining its queue is
    treated as gone once the queue is full.
    """

    def __init__(self, maxsize=16):
        self._queue = queue.Queue(maxsize=maxsize)
        self.closed = False

    def send(self, payload):
        if self.closed:
            raise ChannelClosed('stream closed')
        self._queue.put_nowait(payload)

    def close(self):
        self.closed = True

    def events(self, keepalive_sec=15.0):
        """Yield SSE frames until the channel is closed."""
        yield ': connected\n\n'
        while not self.closed:
            try:
                payload = self._queue.get(timeout=keepalive_sec)
            except queue.Empty:
                yield ': keep-alive\n\n'
                continue
            yield f"data: {json.dumps(payload)}\n\n"

    def __repr__(self):
        return f"<StreamChannel closed={self.closed} pending={self._queue.qsize()}>"


class LeaderboardBroadcaster:
    """Registry of open listener channels. Owned by the app, one per process."""

    def __init__(self):
        self._lock = threading.Lock()
        self._channels: Set[object] = set()

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._channels)

    def register(self, channel):
        with self._lock:
            self._channels.add(channel)
        return channel

    def unregister(self, channel):
        with self._lock:
            self._channels.discard(channel)
        if isinstance(channel, StreamChannel):
            channel.close()

    def unregister_sid(self, sid):
        with self._lock:
            stale = [c for c in self._channels if getattr(c, 'sid', None) == sid]
            for channel in stale:
                self._channels.discard(channel)
        return len(stale)

    def broadcast_leaderboard_update(self) -> int:
        """Notify every listener. Failing channels are pruned; returns how many were reached."""
        with self._lock:
            snapshot: List[object] = list(self._channels)
        delivered = 0
        for channel in snapshot:
            try:
                channel.send(dict(UPDATE_PAYLOAD))
            except Exception as exc:
                self.unregister(channel)
                current_app.logger.info(f"[broadcast-prune] channel={channel!r} error={exc!r}")
                continue
            delivered += 1
        return delivered


def get_broadcaster(app=None) -> LeaderboardBroadcaster:
    app = app or current_app
    return app.extensions[EXTENSION_KEY]
