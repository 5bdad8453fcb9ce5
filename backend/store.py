# store.py
import logging
from contextlib import contextmanager
from typing import Callable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

import models
from db import get_session
from schemas import ExamMeta, GeneratedQuestion, QuestionIn, QuestionOut

logger = logging.getLogger("examgen.store")

EXAM_FIELDS = ("name", "duration", "category", "total_marks", "passing_marks", "questions")
QUESTION_FIELDS = ("name", "options", "correct_option")


class StoreError(Exception):
    pass

class DuplicateExamName(StoreError):
    pass

class NotFound(StoreError):
    pass


def _commit(db: Session, name: Optional[str]) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        msg = str(e.orig).lower()
        if ("unique" in msg or "duplicate" in msg) and "name" in msg:
            raise DuplicateExamName(f"Exam already exists: {name}") from e
        raise StoreError(f"Integrity error: {e.orig}") from e


# -----------------------------------------------------------------------------
# Exams
# -----------------------------------------------------------------------------
def create_exam(db: Session, meta: ExamMeta) -> models.Exam:
    # The unique index on exams.name is the only duplicate guard
    exam = models.Exam(
        name=meta.name,
        duration=meta.duration,
        category=meta.category,
        total_marks=meta.total_marks,
        passing_marks=meta.passing_marks,
        questions=[],
    )
    db.add(exam)
    _commit(db, meta.name)
    db.refresh(exam)
    logger.info("Exam %s created (%r)", exam.id, exam.name)
    return exam


def list_exams(db: Session) -> List[models.Exam]:
    return db.query(models.Exam).order_by(models.Exam.created_at.desc(), models.Exam.id.desc()).all()


def get_exam(db: Session, exam_id: int) -> models.Exam:
    exam = db.get(models.Exam, exam_id)
    if not exam:
        raise NotFound(f"Exam {exam_id} not found")
    return exam


def exam_detail(exam: models.Exam) -> dict:
    """Exam fields with its referenced questions populated, in list order."""
    by_id = {q.id: q for q in exam.question_rows}
    return {
        "id": exam.id,
        "name": exam.name,
        "duration": exam.duration,
        "category": exam.category,
        "totalMarks": exam.total_marks,
        "passingMarks": exam.passing_marks,
        "questions": [
            QuestionOut.model_validate(by_id[qid]).model_dump(by_alias=True)
            for qid in exam.questions or [] if qid in by_id
        ],
    }


def update_exam(db: Session, exam_id: int, **changes) -> models.Exam:
    exam = get_exam(db, exam_id)
    for key, value in changes.items():
        if key not in EXAM_FIELDS:
            raise StoreError(f"Unknown exam field: {key}")
        if key == "questions":
            value = list(value)
        setattr(exam, key, value)
    _commit(db, changes.get("name"))
    db.refresh(exam)
    return exam


def delete_exam(db: Session, exam_id: int) -> None:
    exam = get_exam(db, exam_id)
    db.delete(exam)
    db.commit()
    logger.info("Exam %s deleted", exam_id)


# -----------------------------------------------------------------------------
# Questions
# -----------------------------------------------------------------------------
def create_question(db: Session, data: QuestionIn) -> models.Question:
    """Store a question linked to its exam. The exam's question list is left alone."""
    get_exam(db, data.exam)
    question = models.Question(
        exam_id=data.exam,
        name=data.name,
        options=dict(data.options),
        correct_option=data.correct_option,
    )
    db.add(question)
    db.commit()
    db.refresh(question)
    return question


def get_question(db: Session, question_id: int) -> models.Question:
    question = db.get(models.Question, question_id)
    if not question:
        raise NotFound(f"Question {question_id} not found")
    return question


def update_question(db: Session, question_id: int, **changes) -> models.Question:
    question = get_question(db, question_id)
    for key, value in changes.items():
        if key not in QUESTION_FIELDS:
            raise StoreError(f"Unknown question field: {key}")
        setattr(question, key, value)
    if question.correct_option not in (question.options or {}):
        db.rollback()
        raise StoreError("correctOption must be one of the option keys")
    db.commit()
    db.refresh(question)
    return question


def delete_question(db: Session, question_id: int, exam_id: Optional[int] = None) -> None:
    question = get_question(db, question_id)
    exam_id = exam_id if exam_id is not None else question.exam_id
    db.delete(question)
    exam = db.get(models.Exam, exam_id)
    if exam and question_id in (exam.questions or []):
        exam.questions = [qid for qid in exam.questions if qid != question_id]
    db.commit()


# -----------------------------------------------------------------------------
# Workflow adapter
# -----------------------------------------------------------------------------
class LocalExamStore:
    """Exam/question store backed directly by the database, one session per call."""

    def __init__(self, session_factory: Callable = get_session):
        self._session = session_factory

    @contextmanager
    def _db(self):
        try:
            with self._session() as db:
                yield db
        except SQLAlchemyError as e:
            logger.error("Database error: %s", e)
            raise StoreError(f"Database error: {e}") from e

    def create_exam(self, meta: ExamMeta) -> int:
        with self._db() as db:
            return create_exam(db, meta).id

    def create_question(self, exam_id: int, question: GeneratedQuestion) -> int:
        data = QuestionIn(
            name=question.name,
            options=question.options,
            correct_option=question.correct_option,
            exam=exam_id,
        )
        with self._db() as db:
            return create_question(db, data).id

    def update_exam(self, exam_id: int, **changes) -> None:
        with self._db() as db:
            update_exam(db, exam_id, **changes)

    def delete_question(self, question_id: int, exam_id: int) -> None:
        with self._db() as db:
            delete_question(db, question_id, exam_id)

    def delete_exam(self, exam_id: int) -> None:
        with self._db() as db:
            delete_exam(db, exam_id)
