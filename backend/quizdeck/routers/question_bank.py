from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from quizdeck.core.config import settings
from quizdeck.core.security import get_current_user
from quizdeck.db.session import get_db
from quizdeck.models.user import User
from quizdeck.schemas.common import Envelope
from quizdeck.schemas.content import ImportResult
from quizdeck.services.content import ContentRepository
from quizdeck.services.question_bank import export_quiz_set, parse_import

router = APIRouter(prefix="/quiz-sets", tags=["import-export"])

logger = logging.getLogger(__name__)


@router.get("/{quiz_set_id}/export/json")
def export_json(quiz_set_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    repo = ContentRepository(db)
    qs = repo.get_owned_quiz_set(quiz_set_id, user.id)
    questions = repo.list_questions(quiz_set_id=quiz_set_id, user_id=user.id)
    return JSONResponse(
        content=export_quiz_set(qs, questions),
        headers={"Content-Disposition": f"attachment; filename=quiz-{quiz_set_id}.json"},
    )


@router.post("/{quiz_set_id}/import/json", response_model=Envelope[ImportResult])
def import_json(
    quiz_set_id: int,
    payload: dict = Body(...),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    repo = ContentRepository(db)
    repo.get_owned_quiz_set(quiz_set_id, user.id)
    drafts, skipped = parse_import(payload, max_questions=int(settings.import_max_questions))
    imported = repo.add_questions(quiz_set_id=quiz_set_id, drafts=drafts)
    logger.info("imported %s questions into quiz set %s (%s skipped)", imported, quiz_set_id, skipped)
    return {
        "success": True,
        "data": {"importedCount": imported, "skippedCount": skipped},
        "message": f"imported {imported} questions",
    }
