from sqlalchemy import Column, ForeignKey, String

from .base import Base


class QuizAttemptModel(Base):
    """Timed window opened when a student unlocks a quiz."""

    __tablename__ = "quiz_attempts"

    attempt_id = Column(String, primary_key=True, index=True)
    quiz_id = Column(
        String,
        ForeignKey("quizzes.quiz_id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    student_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    started_at = Column(String, nullable=False)  # ISO format string
    deadline = Column(String, nullable=False)  # ISO format string
    # Set once the attempt has produced a submission
    submission_id = Column(String, ForeignKey("submissions.submission_id"), nullable=True)
    # Set when the attempt is submitted or rejected as late; NULL while open
    closed_at = Column(String, nullable=True)  # ISO format string
