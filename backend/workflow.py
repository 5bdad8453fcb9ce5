# workflow.py
"""
Turn a batch of generated questions into a stored exam.

The store is anything with these methods (see store.LocalExamStore and
api_client.HttpExamStore):

    create_exam(meta) -> exam_id
    create_question(exam_id, question) -> question_id
    update_exam(exam_id, questions=[...])
    delete_question(question_id, exam_id)
    delete_exam(exam_id)

Steps run one at a time and stop at the first failure. Nothing is undone
unless ``compensate=True`` is passed, in which case the questions created so
far and then the exam are deleted before the original error is re-raised.
"""
import logging
from typing import List

from schemas import ExamMeta, ExamOut, GeneratedQuestion
from store import DuplicateExamName, StoreError

logger = logging.getLogger("examgen.workflow")


class WorkflowError(Exception):
    pass

class ExamCreationFailed(WorkflowError):
    pass

class DuplicateExam(ExamCreationFailed):
    pass

class QuestionPersistFailed(WorkflowError):
    def __init__(self, index: int, reason: str, exam_id: int, saved: List[int]):
        super().__init__(f"Failed to save question {index}: {reason}")
        self.index = index
        self.exam_id = exam_id
        self.saved = saved

class ExamUpdateFailed(WorkflowError):
    def __init__(self, reason: str, exam_id: int, saved: List[int]):
        super().__init__(f"Failed to link questions to exam {exam_id}: {reason}")
        self.exam_id = exam_id
        self.saved = saved


def _undo(store, exam_id: int, question_ids: List[int]) -> None:
    for qid in reversed(question_ids):
        try:
            store.delete_question(qid, exam_id)
        except StoreError as e:
            logger.error("Compensation: could not delete question %s: %s", qid, e)
    try:
        store.delete_exam(exam_id)
    except StoreError as e:
        logger.error("Compensation: could not delete exam %s: %s", exam_id, e)
    else:
        logger.info("Compensation: exam %s and %d questions removed", exam_id, len(question_ids))


def materialize(store, meta: ExamMeta, questions: List[GeneratedQuestion],
                compensate: bool = False) -> ExamOut:
    # 1) Exam with an empty question list
    try:
        exam_id = store.create_exam(meta)
    except DuplicateExamName as e:
        raise DuplicateExam(f"Exam already exists: {meta.name}") from e
    except StoreError as e:
        raise ExamCreationFailed(f"Failed to create exam: {e}") from e

    # 2) Questions, in order, each linked to the exam
    saved: List[int] = []
    for i, q in enumerate(questions):
        try:
            saved.append(store.create_question(exam_id, q))
        except StoreError as e:
            err = QuestionPersistFailed(i, str(e), exam_id, list(saved))
            logger.warning("%s (exam %s, %d saved)", err, exam_id, len(saved))
            if compensate:
                _undo(store, exam_id, saved)
            raise err from e

    # 3) Link them
    try:
        store.update_exam(exam_id, questions=saved)
    except StoreError as e:
        err = ExamUpdateFailed(str(e), exam_id, list(saved))
        logger.warning("%s", err)
        if compensate:
            _undo(store, exam_id, saved)
        raise err from e

    logger.info("Exam %s materialized with %d questions", exam_id, len(saved))
    return ExamOut(
        id=exam_id,
        name=meta.name,
        duration=meta.duration,
        category=meta.category,
        total_marks=meta.total_marks,
        passing_marks=meta.passing_marks,
        questions=saved,
    )
