from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from quizdeck.core.errors import Forbidden, InvalidArgument, NotFound
from quizdeck.models.quiz_set import Option, Question, QuestionType, QuizSet

logger = logging.getLogger(__name__)


@dataclass
class OptionDraft:
    text: str
    is_correct: bool = False


@dataclass
class QuestionDraft:
    text: str
    type: QuestionType = QuestionType.single_choice
    explanation: str = ""
    image_url: str | None = None
    category: str | None = None
    difficulty: str | None = None
    options: list[OptionDraft] = field(default_factory=list)


def validate_question_draft(draft: QuestionDraft) -> None:
    if not (draft.text or "").strip():
        raise InvalidArgument("question text and at least one option are required")
    if not draft.options:
        raise InvalidArgument("question text and at least one option are required")
    if any(not (o.text or "").strip() for o in draft.options):
        raise InvalidArgument("all options must have text")
    if not any(o.is_correct for o in draft.options):
        raise InvalidArgument("at least one option must be marked as correct")


class ContentRepository:
    """Quiz sets, questions and options, with owner-based access control."""

    def __init__(self, db: Session):
        self.db = db

    # Read contract used by the exam engine.

    def get_quiz_set_owner(self, quiz_set_id: int) -> int | None:
        return self.db.scalar(select(QuizSet.owner_id).where(QuizSet.id == quiz_set_id))

    def count_questions(self, quiz_set_id: int) -> int:
        return int(self.db.scalar(select(func.count(Question.id)).where(Question.quiz_set_id == quiz_set_id)) or 0)

    def get_question_with_options(self, question_id: int) -> Question | None:
        return self.db.scalar(
            select(Question).options(selectinload(Question.options)).where(Question.id == question_id)
        )

    def get_questions_with_options(self, question_ids: list[int]) -> dict[int, Question]:
        if not question_ids:
            return {}
        rows = self.db.scalars(
            select(Question).options(selectinload(Question.options)).where(Question.id.in_(question_ids))
        ).all()
        return {q.id: q for q in rows}

    def existing_question_ids(self, question_ids: list[int]) -> set[int]:
        if not question_ids:
            return set()
        return set(self.db.scalars(select(Question.id).where(Question.id.in_(question_ids))))

    def correct_option_ids(self, question_ids: list[int]) -> dict[int, set[int]]:
        out: dict[int, set[int]] = {qid: set() for qid in question_ids}
        if not question_ids:
            return out
        rows = self.db.execute(
            select(Option.question_id, Option.id).where(
                Option.question_id.in_(question_ids),
                Option.is_correct == True,  # noqa: E712
            )
        ).all()
        for qid, oid in rows:
            out.setdefault(qid, set()).add(oid)
        return out

    # Ownership checks.

    def get_owned_quiz_set(self, quiz_set_id: int, user_id: int) -> QuizSet:
        qs = self.db.scalar(select(QuizSet).where(QuizSet.id == quiz_set_id))
        if qs is None:
            raise NotFound("quiz set not found")
        if qs.owner_id != user_id:
            raise Forbidden("you do not have permission to access this quiz set")
        return qs

    def get_owned_question(self, question_id: int, user_id: int) -> Question:
        row = self.db.execute(
            select(Question, QuizSet.owner_id)
            .join(QuizSet, QuizSet.id == Question.quiz_set_id)
            .options(selectinload(Question.options))
            .where(Question.id == question_id)
        ).first()
        if row is None:
            raise NotFound("question not found")
        question, owner_id = row
        if owner_id != user_id:
            raise Forbidden("you do not have permission to access this question")
        return question

    # Quiz sets.

    def list_quiz_sets(self, user_id: int) -> list[tuple[QuizSet, int]]:
        counts = (
            select(Question.quiz_set_id, func.count(Question.id).label("n"))
            .group_by(Question.quiz_set_id)
            .subquery()
        )
        rows = self.db.execute(
            select(QuizSet, func.coalesce(counts.c.n, 0))
            .outerjoin(counts, counts.c.quiz_set_id == QuizSet.id)
            .where(QuizSet.owner_id == user_id)
            .order_by(QuizSet.created_at.desc(), QuizSet.id.desc())
        ).all()
        return [(qs, int(n)) for qs, n in rows]

    def create_quiz_set(self, *, owner_id: int, title: str, description: str | None) -> QuizSet:
        if not (title or "").strip():
            raise InvalidArgument("title is required")
        qs = QuizSet(owner_id=owner_id, title=title.strip(), description=description or "")
        self.db.add(qs)
        self.db.commit()
        self.db.refresh(qs)
        return qs

    def update_quiz_set(self, *, quiz_set_id: int, user_id: int, title: str, description: str | None) -> QuizSet:
        qs = self.get_owned_quiz_set(quiz_set_id, user_id)
        if not (title or "").strip():
            raise InvalidArgument("title is required")
        qs.title = title.strip()
        qs.description = description or ""
        self.db.commit()
        self.db.refresh(qs)
        return qs

    def delete_quiz_set(self, *, quiz_set_id: int, user_id: int) -> None:
        qs = self.get_owned_quiz_set(quiz_set_id, user_id)
        self.db.delete(qs)
        self.db.commit()
        logger.info("quiz set %s deleted by user %s", quiz_set_id, user_id)

    # Questions.

    def list_questions(self, *, quiz_set_id: int, user_id: int) -> list[Question]:
        self.get_owned_quiz_set(quiz_set_id, user_id)
        return list(
            self.db.scalars(
                select(Question)
                .options(selectinload(Question.options))
                .where(Question.quiz_set_id == quiz_set_id)
                .order_by(Question.created_at, Question.id)
            )
        )

    def _build_question(self, quiz_set_id: int, draft: QuestionDraft) -> Question:
        question = Question(
            quiz_set_id=quiz_set_id,
            text=draft.text.strip(),
            type=draft.type,
            explanation=draft.explanation or "",
            image_url=draft.image_url,
            category=draft.category,
            difficulty=draft.difficulty,
        )
        question.options = [Option(text=o.text.strip(), is_correct=bool(o.is_correct)) for o in draft.options]
        return question

    def create_question(self, *, quiz_set_id: int, user_id: int, draft: QuestionDraft) -> Question:
        validate_question_draft(draft)
        self.get_owned_quiz_set(quiz_set_id, user_id)
        question = self._build_question(quiz_set_id, draft)
        self.db.add(question)
        self.db.commit()
        return self.get_question_with_options(question.id)

    def add_questions(self, *, quiz_set_id: int, drafts: list[QuestionDraft]) -> int:
        """Insert already-validated drafts in one transaction."""
        for draft in drafts:
            self.db.add(self._build_question(quiz_set_id, draft))
        self.db.commit()
        return len(drafts)

    def update_question(
        self,
        *,
        question_id: int,
        user_id: int,
        text: str,
        type: QuestionType | None,
        explanation: str | None,
        options: list[OptionDraft] | None,
    ) -> Question:
        question = self.get_owned_question(question_id, user_id)
        if not (text or "").strip():
            raise InvalidArgument("question text is required")
        if options is not None:
            validate_question_draft(QuestionDraft(text=text, options=options))

        question.text = text.strip()
        if type is not None:
            question.type = type
        question.explanation = explanation or ""
        if options is not None:
            question.options = [Option(text=o.text.strip(), is_correct=bool(o.is_correct)) for o in options]
        self.db.commit()
        return self.get_question_with_options(question_id)

    def delete_question(self, *, question_id: int, user_id: int) -> None:
        question = self.get_owned_question(question_id, user_id)
        self.db.delete(question)
        self.db.commit()
