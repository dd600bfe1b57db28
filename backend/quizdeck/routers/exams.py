from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from quizdeck.core.rate_limit import rate_limit
from quizdeck.core.security import get_current_user
from quizdeck.db.session import get_db
from quizdeck.models.exam import Exam
from quizdeck.models.user import User
from quizdeck.schemas.common import Envelope
from quizdeck.schemas.exam import (
    ExamCreateRequest,
    ExamResultsResponse,
    ExamStartResponse,
    ExamSubmitRequest,
    ExamSubmitResponse,
    ExamSummary,
)
from quizdeck.services.exams import AnswerDetail, ExamService, SubmittedAnswer

router = APIRouter(tags=["exams"])


def exam_summary(exam: Exam, quiz_set_title: str | None = None) -> dict:
    return {
        "id": exam.id,
        "quizSetId": exam.quiz_set_id,
        "title": exam.title,
        "quizSetTitle": quiz_set_title,
        "durationMinutes": exam.duration_minutes,
        "totalQuestions": exam.total_questions,
        "status": exam.status.value,
        "score": float(exam.score) if exam.score is not None else None,
        "startedAt": exam.started_at,
        "endedAt": exam.ended_at,
        "createdAt": exam.created_at,
    }


@router.post("/quiz-sets/{quiz_set_id}/exams", response_model=Envelope[ExamSummary], status_code=201)
def create_exam(
    quiz_set_id: int,
    body: ExamCreateRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    exam = ExamService(db).create(
        quiz_set_id=quiz_set_id,
        requester_id=user.id,
        title=body.title,
        duration_minutes=body.durationMinutes,
        question_count=body.questionCount,
    )
    return {"success": True, "data": exam_summary(exam)}


@router.get("/exams", response_model=Envelope[list[ExamSummary]])
def list_exams(db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    rows = ExamService(db).list_for_user(user.id)
    return {"success": True, "data": [exam_summary(exam, title) for exam, title in rows]}


@router.post("/exams/{exam_id}/start", response_model=Envelope[ExamStartResponse])
def start_exam(
    exam_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="exam_start", limit=30, window_seconds=60),
):
    exam, questions = ExamService(db).start(exam_id=exam_id, requester_id=user.id)
    # Correctness flags never leave the server before submission.
    return {
        "success": True,
        "data": {
            "examId": exam.id,
            "title": exam.title,
            "durationMinutes": exam.duration_minutes,
            "startedAt": exam.started_at,
            "questions": [
                {
                    "id": q.id,
                    "questionText": q.text,
                    "questionType": q.type.value,
                    "imageUrl": q.image_url,
                    "options": [{"id": o.id, "text": o.text} for o in q.options],
                }
                for q in questions
            ],
        },
    }


@router.post("/exams/{exam_id}/submit", response_model=Envelope[ExamSubmitResponse])
def submit_exam(
    exam_id: int,
    body: ExamSubmitRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    _: object = rate_limit(key_prefix="exam_submit", limit=20, window_seconds=60),
):
    answers = [
        SubmittedAnswer(question_id=a.questionId, selected_option_ids=frozenset(a.selectedOptions))
        for a in body.answers
    ]
    outcome = ExamService(db).submit(exam_id=exam_id, requester_id=user.id, answers=answers)
    return {
        "success": True,
        "data": {
            "examId": outcome.exam_id,
            "totalQuestions": outcome.total_questions,
            "correctCount": outcome.correct_count,
            "score": outcome.score,
            "completedAt": outcome.completed_at,
        },
    }


def _result_answer(d: AnswerDetail) -> dict:
    if d.removed:
        # The question was deleted after the exam started.
        return {
            "questionId": d.question_id,
            "questionText": "",
            "questionType": None,
            "explanation": "",
            "selectedOptions": [],
            "isCorrect": False,
            "answered": False,
            "removed": True,
            "options": [],
        }
    q = d.question
    return {
        "questionId": q.id,
        "questionText": q.text,
        "questionType": q.type.value,
        "explanation": q.explanation or "",
        "selectedOptions": list(d.answer.selected_option_ids or []) if d.answer else [],
        "isCorrect": bool(d.answer.is_correct) if d.answer else False,
        "answered": d.answer is not None and bool(d.answer.selected_option_ids),
        "removed": False,
        "options": [{"id": o.id, "text": o.text, "isCorrect": bool(o.is_correct)} for o in q.options],
    }


@router.get("/exams/{exam_id}/results", response_model=Envelope[ExamResultsResponse])
def exam_results(exam_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    exam, quiz_set_title, details = ExamService(db).results(exam_id=exam_id, requester_id=user.id)
    return {
        "success": True,
        "data": {
            "exam": exam_summary(exam, quiz_set_title),
            "answers": [_result_answer(d) for d in details],
        },
    }
