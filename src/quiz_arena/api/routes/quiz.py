"""Quiz routes.

Authoring, the password-gated quiz fetch, submission and the leaderboard.
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from quiz_arena.api.routes.auth import (
    get_current_user,
    require_student,
    require_teacher,
)
from quiz_arena.core.dependencies import QuizManagerDep, SubmissionManagerDep
from quiz_arena.core.exceptions import (
    AttemptError,
    InvalidAnswerError,
    InvalidQuizPasswordError,
    QuizNotFoundError,
    UserNotFoundError,
)
from quiz_arena.schemas.quiz import (
    CreateQuizRequest,
    CreateQuizResponse,
    LeaderboardEntry,
    QuizAccessRequest,
    QuizContent,
    QuizSummary,
    SubmissionInfo,
    SubmitQuizRequest,
    SubmitQuizResponse,
)
from quiz_arena.schemas.user import Role, User
from quiz_arena.utils.converters import (
    model_to_question_contents,
    model_to_quiz_summary,
    model_to_submission_info,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/quizzes", tags=["Quiz"])


def _quiz_not_found(quiz_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Quiz '{quiz_id}' not found",
    )


@router.post(
    "/create",
    response_model=CreateQuizResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a quiz",
)
def create_quiz(
    req: CreateQuizRequest,
    quiz_manager: QuizManagerDep,
    current_user: User = Depends(require_teacher),
) -> CreateQuizResponse:
    model = quiz_manager.create_quiz(
        title=req.title,
        duration=req.duration,
        password=req.password,
        questions=req.questions,
        owner_id=current_user.user_id,
    )
    return CreateQuizResponse(quiz=model_to_quiz_summary(model))


@router.get("", response_model=List[QuizSummary], summary="List quizzes")
def list_quizzes(
    quiz_manager: QuizManagerDep,
    current_user: User = Depends(get_current_user),
) -> List[QuizSummary]:
    return [model_to_quiz_summary(m) for m in quiz_manager.list_quizzes()]


@router.get("/leaderboard", response_model=List[LeaderboardEntry], summary="Leaderboard")
def leaderboard(submission_manager: SubmissionManagerDep) -> List[LeaderboardEntry]:
    """Top users by their most recent score. Public."""
    return submission_manager.leaderboard()


@router.post("/get/{quiz_id}", response_model=QuizContent, summary="Unlock a quiz")
def get_quiz(
    quiz_id: str,
    req: QuizAccessRequest,
    quiz_manager: QuizManagerDep,
    current_user: User = Depends(get_current_user),
) -> QuizContent:
    """Check the quiz password and start a timed attempt.

    Args:
        quiz_id: The quiz to unlock.
        req: Request carrying the plain text quiz password.
        quiz_manager: Injected QuizManager instance.
        current_user: Current authenticated user.

    Returns:
        QuizContent with the questions and options (never the correct
        answers) plus the attempt deadline.

    Raises:
        HTTPException: 404 for an unknown quiz, 403 for a wrong password.
    """
    try:
        attempt = quiz_manager.open_attempt(quiz_id, req.password, current_user.user_id)
    except QuizNotFoundError:
        raise _quiz_not_found(quiz_id)
    except InvalidQuizPasswordError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))

    quiz = quiz_manager.get_quiz(quiz_id)
    return QuizContent(
        quiz_id=quiz.quiz_id,
        title=quiz.title,
        duration=quiz.duration,
        started_at=attempt.started_at,
        deadline=attempt.deadline,
        questions=model_to_question_contents(quiz),
    )


@router.post("/submit", response_model=SubmitQuizResponse, summary="Submit answers")
def submit_quiz(
    req: SubmitQuizRequest,
    submission_manager: SubmissionManagerDep,
    current_user: User = Depends(require_student),
) -> SubmitQuizResponse:
    try:
        model = submission_manager.submit(req.quiz_id, current_user.user_id, req.answers)
    except QuizNotFoundError:
        raise _quiz_not_found(req.quiz_id)
    except (InvalidAnswerError, AttemptError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except UserNotFoundError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    submission = model_to_submission_info(model)
    return SubmitQuizResponse(
        score=submission.score,
        total=submission.total,
        submission=submission,
    )


@router.get(
    "/submissions/me",
    response_model=List[SubmissionInfo],
    summary="List my submissions",
)
def my_submissions(
    submission_manager: SubmissionManagerDep,
    current_user: User = Depends(get_current_user),
) -> List[SubmissionInfo]:
    models = submission_manager.list_for_student(current_user.user_id)
    return [model_to_submission_info(m) for m in models]


@router.get(
    "/{quiz_id}/submissions",
    response_model=List[SubmissionInfo],
    summary="List submissions of a quiz",
)
def quiz_submissions(
    quiz_id: str,
    quiz_manager: QuizManagerDep,
    submission_manager: SubmissionManagerDep,
    current_user: User = Depends(require_teacher),
) -> List[SubmissionInfo]:
    """Submissions for one quiz; visible to the quiz author and admins."""
    try:
        quiz = quiz_manager.get_quiz(quiz_id)
    except QuizNotFoundError:
        raise _quiz_not_found(quiz_id)

    if current_user.role != Role.ADMIN and quiz.created_by != current_user.user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the quiz author can view its submissions.",
        )
    models = submission_manager.list_for_quiz(quiz_id)
    return [model_to_submission_info(m) for m in models]
