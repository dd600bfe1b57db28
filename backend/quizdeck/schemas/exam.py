from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, StrictInt


class ExamCreateRequest(BaseModel):
    title: str | None = None
    durationMinutes: StrictInt | None = None
    questionCount: StrictInt | None = None


class ExamSummary(BaseModel):
    id: int
    quizSetId: int
    title: str
    quizSetTitle: str | None = None
    durationMinutes: int
    totalQuestions: int
    status: str
    score: float | None = None
    startedAt: datetime | None = None
    endedAt: datetime | None = None
    createdAt: datetime | None = None


class ExamOptionPublic(BaseModel):
    id: int
    text: str


class ExamQuestionPublic(BaseModel):
    id: int
    questionText: str
    questionType: str
    imageUrl: str | None = None
    options: list[ExamOptionPublic]


class ExamStartResponse(BaseModel):
    examId: int
    title: str
    durationMinutes: int
    startedAt: datetime
    questions: list[ExamQuestionPublic]


class ExamAnswerIn(BaseModel):
    questionId: StrictInt
    selectedOptions: list[StrictInt] = []


class ExamSubmitRequest(BaseModel):
    answers: list[ExamAnswerIn]


class ExamSubmitResponse(BaseModel):
    examId: int
    totalQuestions: int
    correctCount: int
    score: float
    completedAt: datetime


class ResultOption(BaseModel):
    id: int
    text: str
    isCorrect: bool


class ResultAnswer(BaseModel):
    questionId: int
    questionText: str
    questionType: str | None = None
    explanation: str
    selectedOptions: list[int]
    isCorrect: bool
    answered: bool
    removed: bool = False
    options: list[ResultOption]


class ExamResultsResponse(BaseModel):
    exam: ExamSummary
    answers: list[ResultAnswer]
