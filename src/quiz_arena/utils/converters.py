"""Conversions between ORM models and pydantic schemas."""

from quiz_arena.models.quiz import QuizModel
from quiz_arena.models.submission import SubmissionModel
from quiz_arena.models.user import UserModel
from quiz_arena.schemas.quiz import (
    AnswerItem,
    QuestionContent,
    QuizSummary,
    SubmissionInfo,
)
from quiz_arena.schemas.user import Role, User


def user_to_model(user: User) -> UserModel:
    return UserModel(
        user_id=user.user_id,
        name=user.name,
        email=user.email,
        password_hash=user.password_hash,
        role=user.role.value,
        last_score=user.last_score,
        last_score_at=user.last_score_at,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def model_to_user(model: UserModel) -> User:
    return User(
        user_id=model.user_id,
        name=model.name,
        email=model.email,
        password_hash=model.password_hash,
        role=Role(model.role),
        last_score=model.last_score,
        last_score_at=model.last_score_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def model_to_quiz_summary(model: QuizModel) -> QuizSummary:
    return QuizSummary(
        quiz_id=model.quiz_id,
        title=model.title,
        duration=model.duration,
        question_count=len(model.questions),
        created_by=model.created_by,
        author_name=model.author.name if model.author else None,
        created_at=model.created_at,
    )


def model_to_question_contents(model: QuizModel) -> list:
    """Questions as shown to students; correct answers are left out."""
    return [
        QuestionContent(
            question_id=question.question_id,
            text=question.text,
            options=list(question.options),
        )
        for question in model.questions
    ]


def model_to_submission_info(model: SubmissionModel) -> SubmissionInfo:
    quiz = model.quiz
    student = model.student
    return SubmissionInfo(
        submission_id=model.submission_id,
        quiz_id=model.quiz_id,
        quiz_title=quiz.title if quiz else None,
        student_id=model.student_id,
        student_name=student.name if student else None,
        answers=[AnswerItem(**answer) for answer in model.answers],
        score=model.score,
        total=len(quiz.questions) if quiz else len(model.answers),
        created_at=model.created_at,
    )
