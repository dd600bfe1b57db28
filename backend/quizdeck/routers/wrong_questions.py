from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quizdeck.core.security import get_current_user
from quizdeck.db.session import get_db
from quizdeck.models.user import User
from quizdeck.models.wrong_question import WrongQuestionRecord
from quizdeck.schemas.common import Envelope, MessageResponse
from quizdeck.schemas.wrong_question import WrongQuestionEntry, WrongQuestionPublic, WrongQuestionStats
from quizdeck.services import wrong_answers

router = APIRouter(prefix="/wrong-questions", tags=["wrong-questions"])


def _entry(rec: WrongQuestionRecord) -> dict:
    return {
        "wrongQuestionId": rec.id,
        "questionId": rec.question_id,
        "wrongCount": rec.wrong_count,
        "lastAttemptedAt": rec.last_attempted_at,
        "isMastered": bool(rec.is_mastered),
    }


@router.get("", response_model=Envelope[list[WrongQuestionPublic]])
def list_wrong_questions(
    quizSetId: int | None = None,
    includeMastered: bool = False,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = wrong_answers.list_records(db, user_id=user.id, quiz_set_id=quizSetId, include_mastered=includeMastered)
    return {
        "success": True,
        "data": [
            {
                "wrongQuestionId": rec.id,
                "questionId": q.id,
                "questionText": q.text,
                "questionType": q.type.value,
                "category": q.category,
                "difficulty": q.difficulty,
                "explanation": q.explanation or "",
                "imageUrl": q.image_url,
                "quizSetTitle": title,
                "wrongCount": rec.wrong_count,
                "lastAttemptedAt": rec.last_attempted_at,
                "isMastered": bool(rec.is_mastered),
                "options": [{"id": o.id, "text": o.text, "isCorrect": bool(o.is_correct)} for o in q.options],
            }
            for rec, q, title in rows
        ],
    }


@router.get("/stats", response_model=Envelope[WrongQuestionStats])
def wrong_question_stats(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return {"success": True, "data": wrong_answers.ledger_stats(db, user_id=user.id)}


@router.post("/{question_id}", response_model=Envelope[WrongQuestionEntry])
def add_wrong_question(question_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    rec = wrong_answers.add_manual_entry(db, user_id=user.id, question_id=question_id)
    return {"success": True, "data": _entry(rec)}


@router.put("/{record_id}/master", response_model=Envelope[WrongQuestionEntry])
def master_wrong_question(record_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    rec = wrong_answers.mark_mastered(db, user_id=user.id, record_id=record_id)
    return {"success": True, "data": _entry(rec), "message": "marked as mastered"}


@router.delete("/{record_id}", response_model=MessageResponse)
def delete_wrong_question(record_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    wrong_answers.remove_record(db, user_id=user.id, record_id=record_id)
    return {"success": True, "message": "removed from wrong questions"}
