"""Submission scoring and leaderboard.

This module grades submitted answers against a quiz's stored correct answers,
records the submission together with the student's last score, and derives
the leaderboard from those scores.
"""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Sequence

import pytz
from sqlalchemy.orm import Session, selectinload

from quiz_arena.config import LEADERBOARD_SIZE, SUBMISSION_GRACE_SECONDS
from quiz_arena.core.exceptions import (
    AttemptError,
    InvalidAnswerError,
    UserNotFoundError,
)
from quiz_arena.models.quiz import QuestionModel, QuizModel
from quiz_arena.models.quiz_attempt import QuizAttemptModel
from quiz_arena.models.submission import SubmissionModel
from quiz_arena.models.user import UserModel
from quiz_arena.schemas.quiz import AnswerItem, LeaderboardEntry
from quiz_arena.utils.quiz_manager import QuizManager

logger = logging.getLogger(__name__)


def grade_answers(
    questions: Sequence[QuestionModel], answers: Sequence[AnswerItem]
) -> int:
    """Count the answers whose selected option is the correct answer.

    Args:
        questions: The quiz's questions.
        answers: Submitted answers.

    Returns:
        The score.

    Raises:
        InvalidAnswerError: If an answer references a question outside the
            quiz, or the same question is answered twice.
    """
    by_id: Dict[str, QuestionModel] = {q.question_id: q for q in questions}
    seen = set()
    score = 0
    for answer in answers:
        question = by_id.get(answer.question_id)
        if question is None:
            raise InvalidAnswerError(
                f"Question not found for ID: {answer.question_id}",
                question_id=answer.question_id,
            )
        if answer.question_id in seen:
            raise InvalidAnswerError(
                f"Question answered more than once: {answer.question_id}",
                question_id=answer.question_id,
            )
        seen.add(answer.question_id)
        if answer.selected_option == question.correct_answer:
            score += 1
    return score


class SubmissionManager:
    """Records quiz submissions and reads scores back."""

    def __init__(self, db: Session, quiz_manager: QuizManager):
        self.db = db
        self.quiz_manager = quiz_manager

    def _open_attempt(self, quiz_id: str, student_id: str) -> QuizAttemptModel:
        attempt = self.quiz_manager.get_open_attempt(quiz_id, student_id)
        if attempt is None:
            raise AttemptError("Quiz has not been started; unlock it with its password first")
        return attempt

    def submit(
        self, quiz_id: str, student_id: str, answers: List[AnswerItem]
    ) -> SubmissionModel:
        """Grade and store a submission.

        The submission, the student's last score and the closed attempt are
        committed together.

        Args:
            quiz_id: Quiz being answered.
            student_id: Submitting student.
            answers: Submitted answers.

        Returns:
            The stored SubmissionModel.

        Raises:
            QuizNotFoundError: If the quiz does not exist.
            InvalidAnswerError: If an answer does not belong to the quiz.
            AttemptError: If there is no open attempt or its deadline passed.
            UserNotFoundError: If the student no longer exists.
        """
        quiz = self.quiz_manager.get_quiz(quiz_id)
        score = grade_answers(quiz.questions, answers)

        attempt = self._open_attempt(quiz_id, student_id)
        now = datetime.now(pytz.utc)
        deadline = datetime.fromisoformat(attempt.deadline)
        if now > deadline + timedelta(seconds=SUBMISSION_GRACE_SECONDS):
            # The expired attempt is closed so the next unlock starts a new one
            attempt.closed_at = now.isoformat()
            self.db.commit()
            logger.info(
                "Rejected late submission on quiz %s by %s (deadline %s)",
                quiz_id,
                student_id,
                attempt.deadline,
            )
            raise AttemptError("Submission window has closed")

        student = self.db.query(UserModel).filter(UserModel.user_id == student_id).first()
        if student is None:
            raise UserNotFoundError(student_id)

        submission = SubmissionModel(
            submission_id=str(uuid.uuid4()),
            student_id=student_id,
            quiz_id=quiz.quiz_id,
            answers=[answer.model_dump() for answer in answers],
            score=score,
            created_at=now.isoformat(),
        )
        self.db.add(submission)
        self.db.flush()

        attempt.submission_id = submission.submission_id
        attempt.closed_at = submission.created_at
        student.last_score = score
        student.last_score_at = submission.created_at
        self.db.commit()
        self.db.refresh(submission)
        logger.info(
            "Recorded submission %s on quiz %s by %s: %d/%d",
            submission.submission_id,
            quiz_id,
            student_id,
            score,
            len(quiz.questions),
        )
        return submission

    def list_for_student(self, student_id: str) -> List[SubmissionModel]:
        return (
            self.db.query(SubmissionModel)
            .options(selectinload(SubmissionModel.quiz).selectinload(QuizModel.questions))
            .filter(SubmissionModel.student_id == student_id)
            .order_by(SubmissionModel.created_at.desc())
            .all()
        )

    def list_for_quiz(self, quiz_id: str) -> List[SubmissionModel]:
        return (
            self.db.query(SubmissionModel)
            .options(selectinload(SubmissionModel.student))
            .filter(SubmissionModel.quiz_id == quiz_id)
            .order_by(SubmissionModel.created_at.desc())
            .all()
        )

    def leaderboard(self, limit: int = LEADERBOARD_SIZE) -> List[LeaderboardEntry]:
        """Top users by most recent score; users who never submitted are left out."""
        models = (
            self.db.query(UserModel)
            .filter(UserModel.last_score.isnot(None))
            .order_by(
                UserModel.last_score.desc(),
                UserModel.last_score_at.asc(),
                UserModel.name.asc(),
            )
            .limit(limit)
            .all()
        )
        return [
            LeaderboardEntry(
                rank=rank,
                user_id=m.user_id,
                name=m.name,
                last_score=m.last_score,
                last_score_at=m.last_score_at,
            )
            for rank, m in enumerate(models, start=1)
        ]
