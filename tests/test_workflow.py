from contextlib import contextmanager
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

import models
from conftest import make_question
from schemas import ExamMeta, GeneratedQuestion
from store import DuplicateExamName, LocalExamStore, StoreError, update_exam
from workflow import (
    DuplicateExam,
    ExamCreationFailed,
    ExamUpdateFailed,
    QuestionPersistFailed,
    materialize,
)


class RecordingStore:
    """Wraps a real store, logs every call and fails on request."""

    def __init__(self, inner, fail_question_at=None, fail_update=False, fail_create=False):
        self.inner = inner
        self.fail_question_at = fail_question_at
        self.fail_update = fail_update
        self.fail_create = fail_create
        self.calls = []
        self._question_calls = 0

    def create_exam(self, meta):
        self.calls.append(("create_exam", meta.name))
        if self.fail_create:
            raise StoreError("database unavailable")
        return self.inner.create_exam(meta)

    def create_question(self, exam_id, question):
        index = self._question_calls
        self._question_calls += 1
        self.calls.append(("create_question", exam_id, index))
        if index == self.fail_question_at:
            raise StoreError("write rejected")
        return self.inner.create_question(exam_id, question)

    def update_exam(self, exam_id, **changes):
        self.calls.append(("update_exam", exam_id, changes))
        if self.fail_update:
            raise StoreError("write rejected")
        return self.inner.update_exam(exam_id, **changes)

    def delete_question(self, question_id, exam_id):
        self.calls.append(("delete_question", question_id))
        return self.inner.delete_question(question_id, exam_id)

    def delete_exam(self, exam_id):
        self.calls.append(("delete_exam", exam_id))
        return self.inner.delete_exam(exam_id)


@pytest.fixture
def meta():
    return ExamMeta(name="Algebra Quiz", duration=30, totalMarks=30, passingMarks=10)


@pytest.fixture
def generated():
    return [GeneratedQuestion.model_validate(make_question(i)) for i in range(1, 4)]


def _exams(db):
    return db.query(models.Exam).all()


def _questions(db):
    return db.query(models.Question).order_by(models.Question.id).all()


def test_end_to_end(meta, generated, session):
    store = RecordingStore(LocalExamStore())
    exam = materialize(store, meta, generated)

    kinds = [c[0] for c in store.calls]
    assert kinds == ["create_exam", "create_question", "create_question", "create_question", "update_exam"]
    assert all(c[1] == exam.id for c in store.calls[1:4])

    rows = _questions(session)
    assert [q.id for q in rows] == exam.questions
    assert store.calls[-1] == ("update_exam", exam.id, {"questions": exam.questions})

    stored = session.get(models.Exam, exam.id)
    assert stored.questions == exam.questions
    assert len(stored.questions) == 3
    assert stored.total_marks == 30 and stored.passing_marks == 10 and stored.duration == 30
    assert all(q.exam_id == exam.id for q in rows)
    assert [q.name for q in rows] == ["Question 1?", "Question 2?", "Question 3?"]


def test_second_question_fails_leaves_partial_state(meta, generated, session):
    store = RecordingStore(LocalExamStore(), fail_question_at=1)
    with pytest.raises(QuestionPersistFailed) as info:
        materialize(store, meta, generated)

    err = info.value
    assert err.index == 1
    assert len(err.saved) == 1
    # third question never attempted, update never reached
    assert [c[0] for c in store.calls] == ["create_exam", "create_question", "create_question"]

    exams = _exams(session)
    assert len(exams) == 1
    assert exams[0].questions == []
    rows = _questions(session)
    assert len(rows) == 1
    assert rows[0].exam_id == exams[0].id == err.exam_id


def test_update_failure_leaves_unlinked_questions(meta, generated, session):
    store = RecordingStore(LocalExamStore(), fail_update=True)
    with pytest.raises(ExamUpdateFailed) as info:
        materialize(store, meta, generated)

    assert len(info.value.saved) == 3
    exam = _exams(session)[0]
    assert exam.questions == []
    assert len(_questions(session)) == 3


def test_exam_creation_failure_stops_everything(meta, generated):
    store = RecordingStore(LocalExamStore(), fail_create=True)
    with pytest.raises(ExamCreationFailed):
        materialize(store, meta, generated)
    assert [c[0] for c in store.calls] == ["create_exam"]


def test_rerun_with_same_name_is_rejected_not_merged(meta, generated, session):
    first = materialize(LocalExamStore(), meta, generated)

    store = RecordingStore(LocalExamStore())
    with pytest.raises(DuplicateExam):
        materialize(store, meta, generated)
    assert [c[0] for c in store.calls] == ["create_exam"]

    exams = _exams(session)
    assert len(exams) == 1
    assert exams[0].questions == first.questions
    assert len(_questions(session)) == 3


def test_duplicate_is_an_exam_creation_failure():
    assert issubclass(DuplicateExam, ExamCreationFailed)


def test_compensation_removes_partial_work(meta, generated, session):
    store = RecordingStore(LocalExamStore(), fail_question_at=2)
    with pytest.raises(QuestionPersistFailed) as info:
        materialize(store, meta, generated, compensate=True)

    assert info.value.index == 2
    saved = info.value.saved
    deletes = [c for c in store.calls if c[0].startswith("delete")]
    assert deletes == [
        ("delete_question", saved[1]),
        ("delete_question", saved[0]),
        ("delete_exam", info.value.exam_id),
    ]
    assert _exams(session) == []
    assert _questions(session) == []


def test_compensation_after_update_failure(meta, generated, session):
    store = RecordingStore(LocalExamStore(), fail_update=True)
    with pytest.raises(ExamUpdateFailed):
        materialize(store, meta, generated, compensate=True)
    assert _exams(session) == []
    assert _questions(session) == []


def test_empty_question_list_creates_empty_exam(meta, session):
    exam = materialize(LocalExamStore(), meta, [])
    assert exam.questions == []
    assert session.get(models.Exam, exam.id).questions == []


def _locked_db():
    @contextmanager
    def factory():
        db = MagicMock()
        db.commit.side_effect = OperationalError("COMMIT", {}, Exception("database is locked"))
        yield db
    return factory


def test_local_store_database_errors_are_store_errors(meta):
    with pytest.raises(StoreError, match="database is locked"):
        LocalExamStore(_locked_db()).create_exam(meta)


class LockedQuestions(LocalExamStore):
    """Real exam writes, question writes hit a locked database."""

    def create_question(self, exam_id, question):
        return LocalExamStore(_locked_db()).create_question(exam_id, question)


def test_database_error_mid_workflow_is_compensated(meta, generated, session):
    with pytest.raises(QuestionPersistFailed) as info:
        materialize(LockedQuestions(), meta, generated, compensate=True)

    assert info.value.index == 0
    assert _exams(session) == []
    assert _questions(session) == []


def test_not_null_violation_is_not_reported_as_duplicate(meta, session):
    exam_id = LocalExamStore().create_exam(meta)
    with pytest.raises(StoreError) as info:
        update_exam(session, exam_id, name=None)
    assert not isinstance(info.value, DuplicateExamName)
    assert session.get(models.Exam, exam_id).name == "Algebra Quiz"
