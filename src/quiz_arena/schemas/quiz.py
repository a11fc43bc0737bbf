"""Quiz schema definitions.

This module defines request and response models for quiz authoring, the
password-gated quiz fetch, submissions and the leaderboard.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator, model_validator


class QuestionCreate(BaseModel):
    """A multiple-choice question as authored by a teacher."""

    model_config = ConfigDict(str_strip_whitespace=True)

    text: str = Field(min_length=1, max_length=500, description="The question text.")
    options: List[StrictStr] = Field(
        min_length=2,
        description="Ordered answer options; at least two, all distinct.",
    )
    correct_answer: StrictStr = Field(
        min_length=1,
        description="The correct option; must be one of the options.",
    )

    @field_validator("options")
    @classmethod
    def check_options(cls, options: List[str]) -> List[str]:
        options = [option.strip() for option in options]
        if any(not option for option in options):
            raise ValueError("Question options cannot be empty.")
        if len(set(options)) != len(options):
            raise ValueError("Question options must be distinct.")
        return options

    @model_validator(mode="after")
    def check_correct_answer(self) -> "QuestionCreate":
        if self.correct_answer not in self.options:
            raise ValueError("Correct answer must be one of the options.")
        return self


class CreateQuizRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1, max_length=200)
    duration: int = Field(gt=0, le=24 * 60 * 60, description="Time limit in seconds.")
    password: str = Field(min_length=4, max_length=128, description="Access password.")
    questions: List[QuestionCreate] = Field(min_length=1)


class QuizSummary(BaseModel):
    """Quiz listing entry; carries no question content."""

    quiz_id: str
    title: str
    duration: int
    question_count: int
    created_by: Optional[str] = None
    author_name: Optional[str] = None
    created_at: str


class CreateQuizResponse(BaseModel):
    success: bool = True
    message: str = "Quiz created successfully"
    quiz: QuizSummary


class QuizAccessRequest(BaseModel):
    password: str = Field(min_length=1)


class QuestionContent(BaseModel):
    """A question as shown to a student taking the quiz."""

    question_id: str
    text: str
    options: List[str]


class QuizContent(BaseModel):
    quiz_id: str
    title: str
    duration: int
    started_at: str
    deadline: str
    questions: List[QuestionContent]


class AnswerItem(BaseModel):
    question_id: StrictStr
    selected_option: StrictStr


class SubmitQuizRequest(BaseModel):
    quiz_id: StrictStr
    answers: List[AnswerItem] = Field(min_length=1)


class SubmissionInfo(BaseModel):
    submission_id: str
    quiz_id: str
    quiz_title: Optional[str] = None
    student_id: str
    student_name: Optional[str] = None
    answers: List[AnswerItem]
    score: int
    total: int
    created_at: str


class SubmitQuizResponse(BaseModel):
    message: str = "Quiz submitted successfully"
    score: int
    total: int
    submission: SubmissionInfo


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: str
    name: str
    last_score: int
    last_score_at: Optional[str] = None
