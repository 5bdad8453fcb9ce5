# generator.py
import logging
import os
from typing import List

from llm import GeminiClient
from quiz_parser import parse_questions
from schemas import GenerationRequest, GeneratedQuestion

logger = logging.getLogger("examgen.generator")

PROMPT_PATH = os.path.join(os.path.dirname(__file__), "prompts", "quiz_prompt.md")
with open(PROMPT_PATH, "r", encoding="utf-8") as f:
    PROMPT_MD = f.read()


class EmptyResult(Exception):
    pass


def build_prompt(req: GenerationRequest) -> str:
    return f"""Generate {req.question_count} {req.difficulty}-level multiple-choice quiz questions based on the following text:
"{req.text}"
{PROMPT_MD}"""


def generate_quiz(req: GenerationRequest, client: GeminiClient) -> List[GeneratedQuestion]:
    """
    Prompt the model once and return the parsed questions.
    Raises GenerationFailed, MalformedOutput or EmptyResult; never retries.
    """
    raw = client.generate(build_prompt(req))
    questions = parse_questions(raw)
    if not questions:
        raise EmptyResult("Failed to generate valid questions.")
    logger.info("Generated %d/%d questions (%s)", len(questions), req.question_count, req.difficulty)
    return questions
