from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quizdeck.core.security import get_current_user
from quizdeck.db.session import get_db
from quizdeck.models.quiz_set import Question, QuestionType, QuizSet
from quizdeck.models.user import User
from quizdeck.schemas.common import Envelope, MessageResponse
from quizdeck.schemas.content import QuestionPublic, QuestionWrite, QuizSetPublic, QuizSetStats, QuizSetWrite
from quizdeck.services.content import ContentRepository, OptionDraft, QuestionDraft
from quizdeck.services.practice import PracticeService

router = APIRouter(prefix="/quiz-sets", tags=["quiz-sets"])


def quiz_set_public(qs: QuizSet, question_count: int | None = None) -> dict:
    return {
        "id": qs.id,
        "title": qs.title,
        "description": qs.description or "",
        "questionCount": question_count,
        "createdAt": qs.created_at,
        "updatedAt": qs.updated_at,
    }


def question_public(q: Question) -> dict:
    return {
        "id": q.id,
        "questionText": q.text,
        "questionType": q.type.value,
        "explanation": q.explanation or "",
        "imageUrl": q.image_url,
        "category": q.category,
        "difficulty": q.difficulty,
        "options": [{"id": o.id, "text": o.text, "isCorrect": bool(o.is_correct)} for o in q.options],
        "createdAt": q.created_at,
    }


def question_draft(body: QuestionWrite) -> QuestionDraft:
    return QuestionDraft(
        text=body.questionText or "",
        type=body.questionType or QuestionType.single_choice,
        explanation=body.explanation or "",
        image_url=body.imageUrl,
        category=body.category,
        difficulty=body.difficulty,
        options=[OptionDraft(text=o.text, is_correct=o.isCorrect) for o in (body.options or [])],
    )


@router.get("", response_model=Envelope[list[QuizSetPublic]])
def list_quiz_sets(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    rows = ContentRepository(db).list_quiz_sets(user.id)
    return {"success": True, "data": [quiz_set_public(qs, n) for qs, n in rows]}


@router.post("", response_model=Envelope[QuizSetPublic], status_code=201)
def create_quiz_set(body: QuizSetWrite, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    qs = ContentRepository(db).create_quiz_set(owner_id=user.id, title=body.title or "", description=body.description)
    return {"success": True, "data": quiz_set_public(qs, 0)}


@router.get("/{quiz_set_id}", response_model=Envelope[QuizSetPublic])
def get_quiz_set(quiz_set_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    repo = ContentRepository(db)
    qs = repo.get_owned_quiz_set(quiz_set_id, user.id)
    return {"success": True, "data": quiz_set_public(qs, repo.count_questions(qs.id))}


@router.put("/{quiz_set_id}", response_model=Envelope[QuizSetPublic])
def update_quiz_set(
    quiz_set_id: int,
    body: QuizSetWrite,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    repo = ContentRepository(db)
    qs = repo.update_quiz_set(quiz_set_id=quiz_set_id, user_id=user.id, title=body.title or "", description=body.description)
    return {"success": True, "data": quiz_set_public(qs, repo.count_questions(qs.id))}


@router.delete("/{quiz_set_id}", response_model=MessageResponse)
def delete_quiz_set(quiz_set_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    ContentRepository(db).delete_quiz_set(quiz_set_id=quiz_set_id, user_id=user.id)
    return {"success": True, "message": "quiz set deleted"}


@router.get("/{quiz_set_id}/questions", response_model=Envelope[list[QuestionPublic]])
def list_questions(quiz_set_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    questions = ContentRepository(db).list_questions(quiz_set_id=quiz_set_id, user_id=user.id)
    return {"success": True, "data": [question_public(q) for q in questions]}


@router.post("/{quiz_set_id}/questions", response_model=Envelope[QuestionPublic], status_code=201)
def create_question(
    quiz_set_id: int,
    body: QuestionWrite,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    q = ContentRepository(db).create_question(quiz_set_id=quiz_set_id, user_id=user.id, draft=question_draft(body))
    return {"success": True, "data": question_public(q)}


@router.get("/{quiz_set_id}/stats", response_model=Envelope[QuizSetStats])
def quiz_set_stats(quiz_set_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    stats = PracticeService(db).quiz_set_stats(user_id=user.id, quiz_set_id=quiz_set_id)
    return {"success": True, "data": stats}
