"""JSON question-bank import/export.

Both directions are pure transforms over the question schema; persistence is
left to ``ContentRepository``.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone

from quizdeck.core.errors import InvalidArgument
from quizdeck.models.quiz_set import Question, QuestionType, QuizSet
from quizdeck.services.content import OptionDraft, QuestionDraft


def export_quiz_set(quiz_set: QuizSet, questions: list[Question], *, now: datetime | None = None) -> dict:
    ts = now or datetime.now(timezone.utc)
    return {
        "quizSet": {
            "title": quiz_set.title,
            "exportedAt": ts.isoformat(),
        },
        "questions": [
            {
                "questionText": q.text,
                "questionType": q.type.value,
                "category": q.category,
                "difficulty": q.difficulty,
                "explanation": q.explanation,
                "imageUrl": q.image_url,
                "options": [{"text": o.text, "isCorrect": bool(o.is_correct)} for o in q.options],
            }
            for q in questions
        ],
    }


def _str_or_none(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_question(raw) -> QuestionDraft | None:
    if not isinstance(raw, Mapping):
        return None
    text = raw.get("questionText")
    if not isinstance(text, str) or not text.strip():
        return None

    options: list[OptionDraft] = []
    for opt in raw.get("options") or []:
        if not isinstance(opt, Mapping):
            continue
        opt_text = opt.get("text")
        if isinstance(opt_text, str) and opt_text.strip():
            options.append(OptionDraft(text=opt_text.strip(), is_correct=opt.get("isCorrect") is True))
    if len(options) < 2 or not any(o.is_correct for o in options):
        return None

    try:
        qtype = QuestionType(raw.get("questionType") or QuestionType.single_choice.value)
    except ValueError:
        qtype = QuestionType.single_choice

    return QuestionDraft(
        text=text.strip(),
        type=qtype,
        explanation=str(raw.get("explanation") or ""),
        image_url=_str_or_none(raw.get("imageUrl")),
        category=_str_or_none(raw.get("category")),
        difficulty=_str_or_none(raw.get("difficulty")),
        options=options,
    )


def parse_import(payload, *, max_questions: int) -> tuple[list[QuestionDraft], int]:
    """Turn an import payload into drafts; returns ``(drafts, skipped_count)``.

    Entries without text, with fewer than two non-empty options, or without a
    correct option are skipped rather than failing the whole batch.
    """
    questions = payload.get("questions") if isinstance(payload, Mapping) else None
    if not isinstance(questions, list):
        raise InvalidArgument("invalid import data")
    if len(questions) > max_questions:
        raise InvalidArgument(f"import is limited to {max_questions} questions")

    drafts: list[QuestionDraft] = []
    skipped = 0
    for raw in questions:
        draft = _parse_question(raw)
        if draft is None:
            skipped += 1
        else:
            drafts.append(draft)
    return drafts, skipped
