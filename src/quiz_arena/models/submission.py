from sqlalchemy import Column, ForeignKey, Integer, JSON, String
from sqlalchemy.orm import relationship

from .base import Base


class SubmissionModel(Base):
    __tablename__ = "submissions"

    submission_id = Column(String, primary_key=True, index=True)
    student_id = Column(String, ForeignKey("users.user_id"), index=True, nullable=False)
    quiz_id = Column(String, ForeignKey("quizzes.quiz_id"), index=True, nullable=False)
    # [{"question_id": ..., "selected_option": ...}, ...]
    answers = Column(JSON, nullable=False, default=list)
    score = Column(Integer, nullable=False)
    created_at = Column(String, nullable=False)

    student = relationship("UserModel")
    quiz = relationship("QuizModel")
