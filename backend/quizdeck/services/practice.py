from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from quizdeck.core.errors import NotFound
from quizdeck.models.practice import PracticeAttempt
from quizdeck.services.content import ContentRepository
from quizdeck.services.scoring import is_exact_match
from quizdeck.services.wrong_answers import record_attempt


class PracticeService:
    def __init__(self, db: Session):
        self.db = db
        self.content = ContentRepository(db)

    def submit_answer(self, *, user_id: int, question_id: int, selected_option_ids: list[int]) -> dict:
        question = self.content.get_question_with_options(question_id)
        if question is None or self.content.get_quiz_set_owner(question.quiz_set_id) != user_id:
            raise NotFound("question not found")

        correct = [o.id for o in question.options if o.is_correct]
        ok = is_exact_match(selected_option_ids, correct)
        now = datetime.now(timezone.utc)

        self.db.add(
            PracticeAttempt(
                user_id=user_id,
                quiz_set_id=question.quiz_set_id,
                question_id=question.id,
                is_correct=ok,
                attempted_at=now,
            )
        )
        record_attempt(self.db, user_id=user_id, question_id=question.id, is_correct=ok, now=now)
        self.db.commit()

        return {
            "isCorrect": ok,
            "correctOptions": correct,
            "explanation": question.explanation or "",
        }

    def quiz_set_stats(self, *, user_id: int, quiz_set_id: int) -> dict:
        self.content.get_owned_quiz_set(quiz_set_id, user_id)
        total, correct = self.db.execute(
            select(
                func.count(PracticeAttempt.id),
                func.coalesce(func.sum(case((PracticeAttempt.is_correct == True, 1), else_=0)), 0),  # noqa: E712
            ).where(PracticeAttempt.user_id == user_id, PracticeAttempt.quiz_set_id == quiz_set_id)
        ).one()
        total = int(total or 0)
        correct = int(correct or 0)
        accuracy = round(correct * 100 / total, 2) if total else 0.0
        return {"totalAttempts": total, "correctCount": correct, "accuracy": accuracy}
