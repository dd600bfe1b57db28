"""Timed exam lifecycle: create, start, submit, results.

An exam moves ``not_started -> in_progress -> completed`` and never back.
Both transitions are conditional UPDATEs on ``status`` so that, of two racing
requests on the same exam, exactly one wins and the other gets
``InvalidState``. Expiry is only checked when a submission arrives; an exam
that is never submitted stays ``in_progress``.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from quizdeck.core.config import settings
from quizdeck.core.errors import (
    DeadlineExceeded,
    Forbidden,
    InvalidArgument,
    InvalidState,
    NotFound,
    QuizdeckError,
)
from quizdeck.models.exam import Exam, ExamAnswer, ExamQuestion, ExamStatus
from quizdeck.models.quiz_set import Question, QuizSet
from quizdeck.services.content import ContentRepository
from quizdeck.services.sampler import sample_question_ids
from quizdeck.services.scoring import exam_score, is_exact_match
from quizdeck.services.wrong_answers import record_attempt

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


@dataclass(frozen=True)
class SubmittedAnswer:
    question_id: int
    selected_option_ids: frozenset[int]


@dataclass(frozen=True)
class SubmitOutcome:
    exam_id: int
    total_questions: int
    correct_count: int
    score: float
    completed_at: datetime


@dataclass(frozen=True)
class AnswerDetail:
    question_id: int
    question: Question | None
    answer: ExamAnswer | None

    @property
    def removed(self) -> bool:
        return self.question is None


def normalize_answers(answers) -> dict[int, frozenset[int]]:
    """Validate a raw answers list and index it by question id.

    Accepts ``SubmittedAnswer`` items or mappings with ``questionId`` and
    ``selectedOptions``. Anything else, a non-integer id, or a question
    answered twice is an ``InvalidArgument``.
    """
    if answers is None or isinstance(answers, (str, bytes, Mapping)) or not isinstance(answers, Sequence):
        raise InvalidArgument("answers must be an array")

    out: dict[int, frozenset[int]] = {}
    for item in answers:
        if isinstance(item, SubmittedAnswer):
            qid, selected = item.question_id, item.selected_option_ids
        elif isinstance(item, Mapping):
            qid = item.get("questionId")
            selected = item.get("selectedOptions")
            if selected is None:
                selected = []
        else:
            raise InvalidArgument("each answer must be an object with questionId and selectedOptions")

        if not _is_int(qid):
            raise InvalidArgument("questionId must be an integer")
        if isinstance(selected, (str, bytes, Mapping)) or not isinstance(selected, (Sequence, set, frozenset)):
            raise InvalidArgument("selectedOptions must be an array of option ids")
        if not all(_is_int(x) for x in selected):
            raise InvalidArgument("selectedOptions must contain only integer option ids")
        if qid in out:
            raise InvalidArgument(f"question {qid} answered more than once")
        out[qid] = frozenset(selected)
    return out


class ExamService:
    def __init__(
        self,
        db: Session,
        *,
        clock: Callable[[], datetime] | None = None,
        rng: random.Random | None = None,
    ):
        self.db = db
        self.content = ContentRepository(db)
        self._clock = clock or _utcnow
        self._rng = rng

    def _now(self) -> datetime:
        return _as_utc(self._clock())

    def _load_owned(self, exam_id: int, requester_id: int) -> Exam:
        exam = self.db.scalar(select(Exam).where(Exam.id == exam_id))
        if exam is None:
            raise NotFound("exam not found")
        if exam.user_id != requester_id:
            raise Forbidden("you do not have permission to access this exam")
        return exam

    def _sampled_question_ids(self, exam_id: int) -> list[int]:
        return list(
            self.db.scalars(
                select(ExamQuestion.question_id).where(ExamQuestion.exam_id == exam_id).order_by(ExamQuestion.position)
            )
        )

    def create(
        self,
        *,
        quiz_set_id: int,
        requester_id: int,
        title: str | None,
        duration_minutes: int | None,
        question_count: int | None = None,
    ) -> Exam:
        if not (title or "").strip() or duration_minutes is None:
            raise InvalidArgument("title and duration are required")
        if not _is_int(duration_minutes) or duration_minutes <= 0:
            raise InvalidArgument("durationMinutes must be a positive integer")
        if duration_minutes > int(settings.exam_max_duration_minutes):
            raise InvalidArgument(f"durationMinutes must not exceed {settings.exam_max_duration_minutes}")
        if question_count is not None:
            if not _is_int(question_count) or question_count < 0:
                raise InvalidArgument("questionCount must be a non-negative integer")
            if question_count > int(settings.exam_max_question_count):
                raise InvalidArgument(f"questionCount must not exceed {settings.exam_max_question_count}")

        owner_id = self.content.get_quiz_set_owner(quiz_set_id)
        if owner_id is None:
            raise NotFound("quiz set not found")
        if owner_id != requester_id:
            raise Forbidden("you do not have permission to create an exam for this quiz set")

        available = self.content.count_questions(quiz_set_id)
        if question_count and question_count > 0:
            total = min(question_count, available)
        else:
            total = available
        if total == 0:
            raise InvalidArgument("no questions available in this quiz set")

        exam = Exam(
            quiz_set_id=quiz_set_id,
            user_id=requester_id,
            title=title.strip(),
            duration_minutes=duration_minutes,
            total_questions=total,
            status=ExamStatus.not_started,
        )
        self.db.add(exam)
        self.db.commit()
        self.db.refresh(exam)
        logger.info("exam %s created on quiz set %s with %s questions", exam.id, quiz_set_id, total)
        return exam

    def start(self, *, exam_id: int, requester_id: int) -> tuple[Exam, list[Question]]:
        exam = self._load_owned(exam_id, requester_id)
        if exam.status != ExamStatus.not_started:
            raise InvalidState("exam has already been started")

        now = self._now()
        try:
            res = self.db.execute(
                update(Exam)
                .where(Exam.id == exam.id, Exam.status == ExamStatus.not_started)
                .values(status=ExamStatus.in_progress, started_at=now)
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                raise InvalidState("exam has already been started")

            question_ids = sample_question_ids(
                self.db, quiz_set_id=exam.quiz_set_id, count=exam.total_questions, rng=self._rng
            )
            if not question_ids:
                raise InvalidState("no questions available in this quiz set")

            for position, qid in enumerate(question_ids, start=1):
                self.db.add(ExamQuestion(exam_id=exam.id, question_id=qid, position=position))
            self.db.commit()
        except QuizdeckError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception("exam %s start rolled back", exam_id)
            raise

        self.db.refresh(exam)
        qmap = self.content.get_questions_with_options(question_ids)
        questions = [qmap[qid] for qid in question_ids if qid in qmap]
        logger.info("exam %s started by user %s", exam.id, requester_id)
        return exam, questions

    def submit(self, *, exam_id: int, requester_id: int, answers) -> SubmitOutcome:
        submitted = normalize_answers(answers)

        exam = self._load_owned(exam_id, requester_id)
        if exam.status != ExamStatus.in_progress:
            raise InvalidState("exam is not in progress")

        now = self._now()
        started_at = _as_utc(exam.started_at)
        if now - started_at > timedelta(minutes=int(exam.duration_minutes)):
            logger.info("exam %s submission rejected: time limit exceeded", exam.id)
            raise DeadlineExceeded("exam time has expired")

        sampled = self._sampled_question_ids(exam.id)
        foreign = sorted(set(submitted) - set(sampled))
        if foreign:
            raise InvalidArgument(f"questions not part of this exam: {', '.join(str(q) for q in foreign)}")

        total = int(exam.total_questions)
        try:
            res = self.db.execute(
                update(Exam)
                .where(Exam.id == exam.id, Exam.status == ExamStatus.in_progress)
                .values(status=ExamStatus.completed, ended_at=now)
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                raise InvalidState("exam is not in progress")

            correct_sets = self.content.correct_option_ids(sampled)
            live = self.content.existing_question_ids(sampled)
            correct_count = 0
            for qid in sampled:
                if qid not in live:
                    # Deleted after start: scored as wrong, nothing left to reference.
                    continue
                selected = submitted.get(qid, frozenset())
                ok = is_exact_match(selected, correct_sets.get(qid, set()))
                if ok:
                    correct_count += 1
                self.db.add(
                    ExamAnswer(
                        exam_id=exam.id,
                        question_id=qid,
                        selected_option_ids=sorted(selected),
                        is_correct=ok,
                        answered_at=now,
                    )
                )
                if qid in submitted:
                    record_attempt(self.db, user_id=requester_id, question_id=qid, is_correct=ok, now=now)

            score = exam_score(correct_count, total)
            self.db.execute(
                update(Exam)
                .where(Exam.id == exam.id)
                .values(score=score)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except QuizdeckError:
            self.db.rollback()
            raise
        except Exception:
            self.db.rollback()
            logger.exception("exam %s submission rolled back", exam_id)
            raise

        logger.info("exam %s completed: %s/%s correct, score %.2f", exam_id, correct_count, total, score)
        if len(live) < len(sampled):
            logger.info("exam %s had %s sampled questions removed before submission", exam_id, len(sampled) - len(live))
        return SubmitOutcome(
            exam_id=exam_id,
            total_questions=total,
            correct_count=correct_count,
            score=score,
            completed_at=now,
        )

    def results(self, *, exam_id: int, requester_id: int) -> tuple[Exam, str, list[AnswerDetail]]:
        exam = self._load_owned(exam_id, requester_id)
        quiz_set_title = self.db.scalar(select(QuizSet.title).where(QuizSet.id == exam.quiz_set_id)) or ""

        sampled = self._sampled_question_ids(exam.id)
        qmap = self.content.get_questions_with_options(sampled)
        answers = {
            a.question_id: a for a in self.db.scalars(select(ExamAnswer).where(ExamAnswer.exam_id == exam.id))
        }
        details = [AnswerDetail(question_id=qid, question=qmap.get(qid), answer=answers.get(qid)) for qid in sampled]
        return exam, quiz_set_title, details

    def list_for_user(self, user_id: int) -> list[tuple[Exam, str]]:
        rows = self.db.execute(
            select(Exam, QuizSet.title)
            .join(QuizSet, QuizSet.id == Exam.quiz_set_id)
            .where(Exam.user_id == user_id)
            .order_by(Exam.created_at.desc(), Exam.id.desc())
        ).all()
        return [(exam, title) for exam, title in rows]
