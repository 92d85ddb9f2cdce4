from datetime import datetime, timezone
import uuid

from flask_login import UserMixin

from sudoku_dash import db, bcrypt

RUN_IN_PROGRESS = 'in_progress'
RUN_COMPLETED = 'completed'
RUN_DNF = 'dnf'  # reserved; nothing drives a run here yet


def utcnow():
    """Current UTC time as a naive datetime (how timestamps are stored)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def isoformat_utc(value):
    return value.isoformat() + 'Z' if value else None


def generate_run_id():
    return str(uuid.uuid4())


class AdminUser(UserMixin, db.Model):
    __tablename__ = 'admin_user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(128), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class Puzzle(db.Model):
    __tablename__ = 'puzzles'
    id = db.Column(db.String(10), primary_key=True)
    puzzle_string = db.Column(db.String(81), nullable=False)
    solution_string = db.Column(db.String(81), nullable=False)

    def to_dict(self):
        # Listing shape: the solution never leaves the server
        return {
            'id': self.id,
            'puzzleString': self.puzzle_string,
        }


class Run(db.Model):
    __tablename__ = 'runs'
    run_id = db.Column(db.String(36), primary_key=True, default=generate_run_id)
    device_id = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(30), nullable=False, index=True)
    consent = db.Column(db.Boolean, nullable=False)
    puzzle_id = db.Column(db.String(10), db.ForeignKey('puzzles.id'), nullable=False)
    started_utc = db.Column(db.DateTime, nullable=False, default=utcnow)
    finished_utc = db.Column(db.DateTime, nullable=True)
    elapsed_ms = db.Column(db.Integer, nullable=True)
    mistakes = db.Column(db.Integer, nullable=False, default=0)
    hints = db.Column(db.Integer, nullable=False, default=0)
    final_ms = db.Column(db.Integer, nullable=True)
    status = db.Column(db.String(20), nullable=False, default=RUN_IN_PROGRESS, index=True)


class LeaderboardEntry(db.Model):
    __tablename__ = 'leaderboard_entries'
    name = db.Column(db.String(30), primary_key=True)
    best_run_id = db.Column(db.String(36), nullable=False)
    best_final_ms = db.Column(db.Integer, nullable=False)
    best_finished_utc = db.Column(db.DateTime, nullable=False)

    __table_args__ = (
        db.Index('ix_leaderboard_ranking', 'best_final_ms', 'best_finished_utc', 'name'),
    )

    def to_dict(self):
        return {
            'name': self.name,
            'bestFinalMs': self.best_final_ms,
            'bestFinishedUtc': isoformat_utc(self.best_finished_utc),
        }
