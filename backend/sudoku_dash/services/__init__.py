"""Puzzles, runs, scoring, the best-time leaderboard and update fan-out.

Blueprints and socket handlers call into these modules; none of them read
the request.
"""
