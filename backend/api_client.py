# api_client.py
import logging
from typing import Optional

import requests

from schemas import ExamMeta, GeneratedQuestion
from store import DuplicateExamName, StoreError

logger = logging.getLogger("examgen.api_client")

DUPLICATE_EXAM_MESSAGE = "Exam already exists"


class HttpExamStore:
    """
    Exam/question store that talks to the /api/exams routes over HTTP,
    the same calls the admin UI makes.
    """

    def __init__(self, base_url: str, token: str, timeout: float = 20,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()
        self.http.headers.update({
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        })

    def _post(self, path: str, payload: dict) -> dict:
        url = f"{self.base_url}/api/exams/{path}"
        try:
            resp = self.http.post(url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise StoreError(f"{path}: {e}") from e

        try:
            body = resp.json()
        except ValueError:
            raise StoreError(f"{path}: HTTP {resp.status_code} with non-JSON body")
        if not isinstance(body, dict):
            raise StoreError(f"{path}: HTTP {resp.status_code} with unexpected body")

        if resp.status_code >= 400 or not body.get("success"):
            message = body.get("message") or body.get("detail") or f"HTTP {resp.status_code}"
            if message == DUPLICATE_EXAM_MESSAGE:
                raise DuplicateExamName(message)
            raise StoreError(f"{path}: {message}")
        return body

    @staticmethod
    def _new_id(path: str, body: dict) -> int:
        data = body.get("data")
        if not isinstance(data, dict) or data.get("id") is None:
            raise StoreError(f"{path}: reply carries no id")
        return data["id"]

    def create_exam(self, meta: ExamMeta) -> int:
        payload = meta.model_dump(by_alias=True)
        payload["questions"] = []
        return self._new_id("add", self._post("add", payload))

    def create_question(self, exam_id: int, question: GeneratedQuestion) -> int:
        payload = question.model_dump(by_alias=True)
        payload["exam"] = exam_id
        return self._new_id("add-question-to-exam", self._post("add-question-to-exam", payload))

    def update_exam(self, exam_id: int, **changes) -> None:
        payload = {"examId": exam_id}
        payload.update(changes)
        self._post("edit-exam-by-id", payload)

    def delete_question(self, question_id: int, exam_id: int) -> None:
        self._post("delete-question-in-exam", {"questionId": question_id, "examId": exam_id})

    def delete_exam(self, exam_id: int) -> None:
        self._post("delete-exam-by-id", {"examId": exam_id})
