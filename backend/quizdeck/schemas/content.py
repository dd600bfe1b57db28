from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, StrictInt

from quizdeck.models.quiz_set import QuestionType


class QuizSetWrite(BaseModel):
    title: str | None = None
    description: str | None = None


class QuizSetPublic(BaseModel):
    id: int
    title: str
    description: str
    questionCount: int | None = None
    createdAt: datetime | None = None
    updatedAt: datetime | None = None


class OptionWrite(BaseModel):
    text: str = ""
    isCorrect: bool = False


class QuestionWrite(BaseModel):
    questionText: str | None = None
    questionType: QuestionType | None = None
    explanation: str | None = None
    imageUrl: str | None = None
    category: str | None = Field(default=None, max_length=100)
    difficulty: str | None = Field(default=None, max_length=20)
    options: list[OptionWrite] | None = None


class OptionPublic(BaseModel):
    id: int
    text: str
    isCorrect: bool


class QuestionPublic(BaseModel):
    id: int
    questionText: str
    questionType: str
    explanation: str
    imageUrl: str | None = None
    category: str | None = None
    difficulty: str | None = None
    options: list[OptionPublic]
    createdAt: datetime | None = None


class PracticeSubmitRequest(BaseModel):
    selectedOptions: list[StrictInt]


class PracticeSubmitResponse(BaseModel):
    isCorrect: bool
    correctOptions: list[int]
    explanation: str


class QuizSetStats(BaseModel):
    totalAttempts: int
    correctCount: int
    accuracy: float


class ImportResult(BaseModel):
    importedCount: int
    skippedCount: int
