from __future__ import annotations

import random

from sqlalchemy import select
from sqlalchemy.orm import Session

from quizdeck.models.quiz_set import Question


def sample_question_ids(db: Session, *, quiz_set_id: int, count: int, rng: random.Random | None = None) -> list[int]:
    """Pick ``count`` distinct question ids of a quiz set uniformly at random.

    When ``count`` covers the whole set every question is returned, in random
    order. Nothing is written; the caller persists the draw if it needs it.
    """
    if count <= 0:
        return []

    pool = list(db.scalars(select(Question.id).where(Question.quiz_set_id == quiz_set_id).order_by(Question.id)))
    rng = rng or random.SystemRandom()
    if count >= len(pool):
        rng.shuffle(pool)
        return pool
    return rng.sample(pool, count)
