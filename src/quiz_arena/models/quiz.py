from sqlalchemy import Column, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.orm import relationship
from .base import Base


class QuizModel(Base):
    __tablename__ = "quizzes"

    quiz_id = Column(String, primary_key=True, index=True)
    title = Column(String, nullable=False)
    duration = Column(Integer, nullable=False)  # seconds
    password_hash = Column(String, nullable=False)
    created_by = Column(String, ForeignKey("users.user_id"), index=True, nullable=True)
    created_at = Column(String, nullable=False)

    questions = relationship(
        "QuestionModel",
        back_populates="quiz",
        order_by="QuestionModel.position",
        cascade="all, delete-orphan",
    )
    author = relationship("UserModel")


class QuestionModel(Base):
    __tablename__ = "questions"

    question_id = Column(String, primary_key=True, index=True)
    quiz_id = Column(String, ForeignKey("quizzes.quiz_id", ondelete="CASCADE"), index=True)
    position = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)  # ordered list of option strings
    correct_answer = Column(String, nullable=False)

    quiz = relationship("QuizModel", back_populates="questions")
