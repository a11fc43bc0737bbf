"""Quiz management utilities."""

import logging
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

import pytz
from sqlalchemy.orm import Session, selectinload

from quiz_arena.core.exceptions import InvalidQuizPasswordError, QuizNotFoundError
from quiz_arena.models.quiz import QuestionModel, QuizModel
from quiz_arena.models.quiz_attempt import QuizAttemptModel
from quiz_arena.schemas.quiz import QuestionCreate
from quiz_arena.utils.security import PasswordHasher

logger = logging.getLogger(__name__)


class QuizManager:
    """Manages quiz authoring and password-gated access."""

    def __init__(self, db: Session, hasher: PasswordHasher):
        self.db = db
        self.hasher = hasher

    def create_quiz(
        self,
        title: str,
        duration: int,
        password: str,
        questions: List[QuestionCreate],
        owner_id: str,
    ) -> QuizModel:
        """Create a quiz and its questions in one transaction."""
        now = datetime.now(pytz.utc).isoformat()
        quiz = QuizModel(
            quiz_id=str(uuid.uuid4()),
            title=title.strip(),
            duration=duration,
            password_hash=self.hasher.hash(password),
            created_by=owner_id,
            created_at=now,
        )
        for position, question in enumerate(questions):
            quiz.questions.append(
                QuestionModel(
                    question_id=str(uuid.uuid4()),
                    position=position,
                    text=question.text.strip(),
                    options=list(question.options),
                    correct_answer=question.correct_answer,
                )
            )
        self.db.add(quiz)
        self.db.commit()
        self.db.refresh(quiz)
        logger.info(
            "Created quiz %s with %d questions by %s",
            quiz.quiz_id,
            len(questions),
            owner_id,
        )
        return quiz

    def get_quiz(self, quiz_id: str) -> QuizModel:
        model = (
            self.db.query(QuizModel)
            .options(selectinload(QuizModel.questions))
            .filter(QuizModel.quiz_id == quiz_id)
            .first()
        )
        if not model:
            raise QuizNotFoundError(quiz_id)
        return model

    def list_quizzes(self, owner_id: Optional[str] = None) -> List[QuizModel]:
        query = self.db.query(QuizModel).options(
            selectinload(QuizModel.questions), selectinload(QuizModel.author)
        )
        if owner_id:
            query = query.filter(QuizModel.created_by == owner_id)
        return query.order_by(QuizModel.created_at.desc()).all()

    def get_open_attempt(self, quiz_id: str, student_id: str) -> Optional[QuizAttemptModel]:
        """Return the student's unclosed attempt on a quiz, if any."""
        return (
            self.db.query(QuizAttemptModel)
            .filter(
                QuizAttemptModel.quiz_id == quiz_id,
                QuizAttemptModel.student_id == student_id,
                QuizAttemptModel.closed_at.is_(None),
            )
            .order_by(QuizAttemptModel.started_at.asc())
            .first()
        )

    def open_attempt(self, quiz_id: str, password: str, student_id: str) -> QuizAttemptModel:
        """Unlock a quiz with its password and start a timed attempt.

        Unlocking again while an attempt is still open returns that attempt
        unchanged, so the deadline cannot be pushed back by re-unlocking.

        Args:
            quiz_id: Quiz to unlock.
            password: Plain text access password.
            student_id: User taking the quiz.

        Returns:
            The open attempt; its deadline is started_at + quiz duration.

        Raises:
            QuizNotFoundError: If the quiz does not exist.
            InvalidQuizPasswordError: If the password does not match.
        """
        quiz = self.get_quiz(quiz_id)
        if not self.hasher.verify(password, quiz.password_hash):
            logger.info("Rejected quiz password for quiz %s by %s", quiz_id, student_id)
            raise InvalidQuizPasswordError("Incorrect quiz password")

        existing = self.get_open_attempt(quiz.quiz_id, student_id)
        if existing is not None:
            logger.info(
                "Resuming attempt %s on quiz %s for %s", existing.attempt_id, quiz_id, student_id
            )
            return existing

        started_at = datetime.now(pytz.utc)
        attempt = QuizAttemptModel(
            attempt_id=str(uuid.uuid4()),
            quiz_id=quiz.quiz_id,
            student_id=student_id,
            started_at=started_at.isoformat(),
            deadline=(started_at + timedelta(seconds=quiz.duration)).isoformat(),
        )
        self.db.add(attempt)
        self.db.commit()
        self.db.refresh(attempt)
        logger.info("Opened attempt %s on quiz %s for %s", attempt.attempt_id, quiz_id, student_id)
        return attempt
