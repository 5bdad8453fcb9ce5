# quiz_parser.py
import json
import re
from typing import List

from schemas import GeneratedQuestion, OPTION_KEYS

# ```json ... ``` wrappers the model likes to add
FENCE_RE = re.compile(r"```(?:json|JSON)?")


class MalformedOutput(Exception):
    pass


def strip_fences(text: str) -> str:
    return FENCE_RE.sub("", text or "").strip()


def _check_question(i: int, q) -> GeneratedQuestion:
    if not isinstance(q, dict):
        raise MalformedOutput(f"Question {i} is not an object.")

    name = q.get("name")
    options = q.get("options")
    correct = q.get("correctOption")
    if not name or not options or not correct:
        raise MalformedOutput(f"Question {i} is missing name, options or correctOption.")

    if not isinstance(name, str) or not name.strip():
        raise MalformedOutput(f"Question {i}: name must be non-empty text.")
    if not isinstance(options, dict):
        raise MalformedOutput(f"Question {i}: options must be an object keyed A-D.")
    if sorted(options) != list(OPTION_KEYS):
        raise MalformedOutput(
            f"Question {i}: expected options {', '.join(OPTION_KEYS)}, got {', '.join(map(str, options))}."
        )
    for key, value in options.items():
        if not isinstance(value, str) or not value.strip():
            raise MalformedOutput(f"Question {i}: option {key} is empty.")

    if not isinstance(correct, str) or correct.strip() not in options:
        raise MalformedOutput(f"Question {i}: correctOption {correct!r} is not one of the options.")

    return GeneratedQuestion(
        name=name.strip(),
        options={k: options[k].strip() for k in OPTION_KEYS},
        correct_option=correct.strip(),
    )


def parse_questions(text: str) -> List[GeneratedQuestion]:
    """
    Turn raw model output into validated questions, preserving order.

    Raises MalformedOutput when the text is not a JSON array of
    well-formed four-option questions.
    """
    cleaned = strip_fences(text)
    try:
        data = json.loads(cleaned)
    except (ValueError, RecursionError) as e:
        raise MalformedOutput(f"Generated text is not valid JSON: {e}\nRaw: {cleaned[:400]}") from e

    if not isinstance(data, list):
        raise MalformedOutput("Generated text is not a valid JSON array.")

    return [_check_question(i, q) for i, q in enumerate(data)]
