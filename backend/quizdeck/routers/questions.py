from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quizdeck.core.security import get_current_user
from quizdeck.db.session import get_db
from quizdeck.models.user import User
from quizdeck.routers.quiz_sets import question_public
from quizdeck.schemas.common import Envelope, MessageResponse
from quizdeck.schemas.content import PracticeSubmitRequest, PracticeSubmitResponse, QuestionPublic, QuestionWrite
from quizdeck.services.content import ContentRepository, OptionDraft
from quizdeck.services.practice import PracticeService

router = APIRouter(prefix="/questions", tags=["questions"])


@router.put("/{question_id}", response_model=Envelope[QuestionPublic])
def update_question(
    question_id: int,
    body: QuestionWrite,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    options = None
    if body.options is not None:
        options = [OptionDraft(text=o.text, is_correct=o.isCorrect) for o in body.options]
    q = ContentRepository(db).update_question(
        question_id=question_id,
        user_id=user.id,
        text=body.questionText or "",
        type=body.questionType,
        explanation=body.explanation,
        options=options,
    )
    return {"success": True, "data": question_public(q)}


@router.delete("/{question_id}", response_model=MessageResponse)
def delete_question(question_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    ContentRepository(db).delete_question(question_id=question_id, user_id=user.id)
    return {"success": True, "message": "question deleted"}


@router.post("/{question_id}/submit", response_model=Envelope[PracticeSubmitResponse])
def submit_practice_answer(
    question_id: int,
    body: PracticeSubmitRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = PracticeService(db).submit_answer(
        user_id=user.id, question_id=question_id, selected_option_ids=body.selectedOptions
    )
    return {"success": True, "data": result}
