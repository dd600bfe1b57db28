from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from quizdeck.schemas.content import OptionPublic


class WrongQuestionPublic(BaseModel):
    wrongQuestionId: int
    questionId: int
    questionText: str
    questionType: str
    category: str | None = None
    difficulty: str | None = None
    explanation: str
    imageUrl: str | None = None
    quizSetTitle: str
    wrongCount: int
    lastAttemptedAt: datetime
    isMastered: bool
    options: list[OptionPublic]


class WrongQuestionEntry(BaseModel):
    wrongQuestionId: int
    questionId: int
    wrongCount: int
    lastAttemptedAt: datetime
    isMastered: bool


class WrongQuestionStats(BaseModel):
    totalWrong: int
    unmasteredCount: int
    masteredCount: int
    avgWrongCount: float
