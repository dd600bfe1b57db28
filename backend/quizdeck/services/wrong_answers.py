from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import delete, func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, selectinload

from quizdeck.core.errors import NotFound
from quizdeck.models.quiz_set import Question, QuizSet
from quizdeck.models.wrong_question import WrongQuestionRecord

logger = logging.getLogger(__name__)


def _insert_for(db: Session):
    name = db.get_bind().dialect.name
    if name == "postgresql":
        return postgresql.insert
    if name == "sqlite":
        return sqlite.insert
    raise RuntimeError(f"unsupported database dialect for wrong-question upsert: {name}")


def record_attempt(db: Session, *, user_id: int, question_id: int, is_correct: bool, now: datetime | None = None) -> None:
    """Single entry point for the mistake ledger, shared by practice and exams.

    A wrong answer inserts ``(user, question)`` with ``wrong_count=1`` or bumps
    the existing row and clears mastery. A correct answer writes nothing.
    Runs inside the caller's transaction; the caller commits.
    """
    if is_correct:
        return

    ts = now or datetime.now(timezone.utc)
    insert = _insert_for(db)
    stmt = insert(WrongQuestionRecord).values(
        user_id=user_id,
        question_id=question_id,
        wrong_count=1,
        last_attempted_at=ts,
        is_mastered=False,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "question_id"],
        set_={
            "wrong_count": WrongQuestionRecord.wrong_count + 1,
            "last_attempted_at": ts,
            "is_mastered": False,
        },
    )
    db.execute(stmt)


def mark_mastered(db: Session, *, user_id: int, record_id: int) -> WrongQuestionRecord:
    res = db.execute(
        update(WrongQuestionRecord)
        .where(WrongQuestionRecord.id == record_id, WrongQuestionRecord.user_id == user_id)
        .values(is_mastered=True)
    )
    if res.rowcount != 1:
        db.rollback()
        raise NotFound("wrong question record not found")
    db.commit()
    return db.scalars(
        select(WrongQuestionRecord)
        .where(WrongQuestionRecord.id == record_id)
        .execution_options(populate_existing=True)
    ).one()


def remove_record(db: Session, *, user_id: int, record_id: int) -> None:
    res = db.execute(
        delete(WrongQuestionRecord).where(WrongQuestionRecord.id == record_id, WrongQuestionRecord.user_id == user_id)
    )
    if res.rowcount != 1:
        db.rollback()
        raise NotFound("wrong question record not found")
    db.commit()
    logger.info("wrong question record removed", extra={"user_id": user_id, "record_id": record_id})


def ledger_stats(db: Session, *, user_id: int) -> dict:
    row = db.execute(
        select(
            func.count(WrongQuestionRecord.id),
            func.count(WrongQuestionRecord.id).filter(WrongQuestionRecord.is_mastered == False),  # noqa: E712
            func.count(WrongQuestionRecord.id).filter(WrongQuestionRecord.is_mastered == True),  # noqa: E712
            func.avg(WrongQuestionRecord.wrong_count),
        ).where(WrongQuestionRecord.user_id == user_id)
    ).one()
    total, unmastered, mastered, avg = row
    return {
        "totalWrong": int(total or 0),
        "unmasteredCount": int(unmastered or 0),
        "masteredCount": int(mastered or 0),
        "avgWrongCount": round(float(avg or 0), 2),
    }


def list_records(
    db: Session,
    *,
    user_id: int,
    quiz_set_id: int | None = None,
    include_mastered: bool = False,
) -> list[tuple[WrongQuestionRecord, Question, str]]:
    stmt = (
        select(WrongQuestionRecord, Question, QuizSet.title)
        .join(Question, Question.id == WrongQuestionRecord.question_id)
        .join(QuizSet, QuizSet.id == Question.quiz_set_id)
        .options(selectinload(Question.options))
        .where(WrongQuestionRecord.user_id == user_id)
    )
    if quiz_set_id is not None:
        stmt = stmt.where(Question.quiz_set_id == quiz_set_id)
    if not include_mastered:
        stmt = stmt.where(WrongQuestionRecord.is_mastered == False)  # noqa: E712
    stmt = stmt.order_by(WrongQuestionRecord.wrong_count.desc(), WrongQuestionRecord.last_attempted_at.desc())
    return [(rec, q, title) for rec, q, title in db.execute(stmt).all()]


def add_manual_entry(db: Session, *, user_id: int, question_id: int) -> WrongQuestionRecord:
    owner_id = db.scalar(
        select(QuizSet.owner_id).join(Question, Question.quiz_set_id == QuizSet.id).where(Question.id == question_id)
    )
    if owner_id is None or owner_id != user_id:
        raise NotFound("question not found")

    record_attempt(db, user_id=user_id, question_id=question_id, is_correct=False)
    db.commit()
    return db.scalars(
        select(WrongQuestionRecord)
        .where(WrongQuestionRecord.user_id == user_id, WrongQuestionRecord.question_id == question_id)
        .execution_options(populate_existing=True)
    ).one()
