# main.py
import logging
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import require_user
from config import get_settings
from db import get_session, init_db
from generator import EmptyResult, generate_quiz
from llm import GeminiClient, GenerationFailed
from quiz_parser import MalformedOutput
import schemas
import store
from workflow import DuplicateExam, WorkflowError, materialize

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("examgen")

# -----------------------------------------------------------------------------
# App, lifecycle & CORS
# -----------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    init_db()
    app.state.llm = None
    if settings.google_api_key:
        app.state.llm = GeminiClient(
            api_key=settings.google_api_key,
            model_name=settings.gemini_model,
            generation_config=settings.generation,
        )
        logger.info("Gemini client ready (%s)", settings.gemini_model)
    else:
        logger.warning("GOOGLE_API_KEY is not set; quiz generation is disabled")
    yield


app = FastAPI(title="Exam Generator API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def fail(status_code: int, message: str, data=None) -> JSONResponse:
    content = {"message": message, "success": False}
    if data is not None:
        content["data"] = data
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return fail(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        where = ".".join(str(p) for p in err.get("loc", ())[1:]) or "body"
        problems.append(f"{where}: {err.get('msg')}")
    return fail(400, "Invalid request: " + "; ".join(problems))


def get_llm(request: Request) -> GeminiClient:
    client = getattr(request.app.state, "llm", None)
    if client is None:
        raise HTTPException(status_code=503, detail="Quiz generation is not configured")
    return client


def get_exam_store() -> store.LocalExamStore:
    return store.LocalExamStore()

# -----------------------------------------------------------------------------
# Health
# -----------------------------------------------------------------------------
@app.get("/api/health")
def health():
    return {"status": "ok"}

# --- LLM smoke test ---
@app.get("/api/llm-test")
def llm_test(request: Request):
    client = getattr(request.app.state, "llm", None)
    if client is None:
        return {"ok": False, "error": "GOOGLE_API_KEY is not set"}
    return client.ping()

# -----------------------------------------------------------------------------
# Exams
# -----------------------------------------------------------------------------
router = APIRouter(prefix="/api/exams", dependencies=[Depends(require_user)])


def _exam_out(exam) -> dict:
    return schemas.ExamOut.model_validate(exam).model_dump(by_alias=True)


@router.post("/generate-quiz")
def generate_quiz_route(payload: schemas.GenerationRequest, llm: GeminiClient = Depends(get_llm)):
    try:
        questions = generate_quiz(payload, llm)
    except GenerationFailed as e:
        logger.error("Error generating quiz: %s", e)
        return fail(502, "Error generating quiz", str(e))
    except MalformedOutput as e:
        logger.error("Error parsing generated text: %s", e)
        return fail(502, "Failed to parse generated questions. Please check the prompt and try again.", str(e))
    except EmptyResult:
        return fail(400, "Failed to generate valid questions.")

    return {
        "message": "Quiz questions generated successfully",
        "success": True,
        "data": [q.model_dump(by_alias=True) for q in questions],
    }


@router.post("/generate-and-save")
def generate_and_save(
    payload: schemas.GenerateAndSaveIn,
    llm: GeminiClient = Depends(get_llm),
    exams: store.LocalExamStore = Depends(get_exam_store),
):
    try:
        questions = generate_quiz(payload, llm)
    except GenerationFailed as e:
        return fail(502, "Error generating quiz", str(e))
    except MalformedOutput as e:
        return fail(502, "Failed to parse generated questions. Please check the prompt and try again.", str(e))
    except EmptyResult:
        return fail(400, "Failed to generate valid questions.")

    try:
        exam = materialize(exams, payload.exam_meta(), questions, compensate=True)
    except DuplicateExam as e:
        return fail(409, "Exam already exists", str(e))
    except WorkflowError as e:
        logger.error("Saving generated quiz failed: %s", e)
        return fail(500, str(e))

    return {"message": "Quiz added successfully", "success": True, "data": exam.model_dump(by_alias=True)}


@router.post("/add")
def add_exam(payload: schemas.ExamIn):
    with get_session() as db:
        try:
            exam = store.create_exam(db, payload)
        except store.DuplicateExamName:
            return {"message": "Exam already exists", "success": False}
        return {"message": "Exam added successfully", "success": True, "data": _exam_out(exam)}


@router.post("/get-all-exams")
def get_all_exams():
    with get_session() as db:
        rows = store.list_exams(db)
        return {"message": "Exams fetched successfully", "success": True, "data": [_exam_out(r) for r in rows]}


@router.post("/get-exam-by-id")
def get_exam_by_id(payload: schemas.ExamIdIn):
    with get_session() as db:
        try:
            exam = store.get_exam(db, payload.exam_id)
        except store.NotFound:
            raise HTTPException(status_code=404, detail="Exam not found")
        return {"message": "Exam fetched successfully", "success": True, "data": store.exam_detail(exam)}


@router.post("/edit-exam-by-id")
def edit_exam_by_id(payload: schemas.ExamPatch):
    changes = payload.model_dump(exclude_unset=True, exclude={"exam_id"})
    with get_session() as db:
        try:
            exam = store.update_exam(db, payload.exam_id, **changes)
        except store.NotFound:
            raise HTTPException(status_code=404, detail="Exam not found")
        except store.DuplicateExamName:
            return {"message": "Exam already exists", "success": False}
        except store.StoreError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {"message": "Exam edited successfully", "success": True, "data": _exam_out(exam)}


@router.post("/delete-exam-by-id")
def delete_exam_by_id(payload: schemas.ExamIdIn):
    with get_session() as db:
        try:
            store.delete_exam(db, payload.exam_id)
        except store.NotFound:
            raise HTTPException(status_code=404, detail="Exam not found")
        return {"message": "Exam deleted successfully", "success": True}

# -----------------------------------------------------------------------------
# Questions
# -----------------------------------------------------------------------------
@router.post("/add-question-to-exam")
def add_question_to_exam(payload: schemas.QuestionIn):
    with get_session() as db:
        try:
            question = store.create_question(db, payload)
        except store.NotFound:
            raise HTTPException(status_code=404, detail="Exam not found")
        return {
            "message": "Question added successfully",
            "success": True,
            "data": schemas.QuestionOut.model_validate(question).model_dump(by_alias=True),
        }


@router.post("/edit-question-in-exam")
def edit_question_in_exam(payload: schemas.QuestionPatch):
    changes = payload.model_dump(exclude_unset=True, exclude={"question_id"})
    with get_session() as db:
        try:
            question = store.update_question(db, payload.question_id, **changes)
        except store.NotFound:
            raise HTTPException(status_code=404, detail="Question not found")
        except store.StoreError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return {
            "message": "Question edited successfully",
            "success": True,
            "data": schemas.QuestionOut.model_validate(question).model_dump(by_alias=True),
        }


@router.post("/delete-question-in-exam")
def delete_question_in_exam(payload: schemas.QuestionDeleteIn):
    with get_session() as db:
        try:
            store.delete_question(db, payload.question_id, payload.exam_id)
        except store.NotFound:
            raise HTTPException(status_code=404, detail="Question not found")
        return {"message": "Question deleted successfully", "success": True}


app.include_router(router)
