"""Quiz Arena: timed, password-protected quizzes with a score leaderboard."""

__version__ = "1.0.0"
