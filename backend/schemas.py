# schemas.py
from typing import Dict, List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Difficulty = Literal["easy", "medium", "hard"]
OPTION_KEYS = ("A", "B", "C", "D")


class GenerationRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(min_length=1)
    difficulty: Difficulty = "medium"
    question_count: int = Field(alias="numberOfQuestions", gt=0)

    @field_validator("text")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("text must not be blank")
        return v


class GeneratedQuestion(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    options: Dict[str, str]
    correct_option: str = Field(alias="correctOption")


class ExamMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    duration: int = 0
    category: str = ""
    total_marks: int = Field(default=0, alias="totalMarks")
    passing_marks: int = Field(default=0, alias="passingMarks")


class ExamIn(ExamMeta):
    questions: List[int] = Field(default_factory=list)


class ExamPatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    exam_id: int = Field(alias="examId")
    name: Optional[str] = None
    duration: Optional[int] = None
    category: Optional[str] = None
    total_marks: Optional[int] = Field(default=None, alias="totalMarks")
    passing_marks: Optional[int] = Field(default=None, alias="passingMarks")
    questions: Optional[List[int]] = None

    @field_validator("name", "duration", "category", "total_marks", "passing_marks", "questions")
    @classmethod
    def _no_nulls(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class ExamOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    name: str
    duration: int
    category: str
    total_marks: int = Field(alias="totalMarks")
    passing_marks: int = Field(alias="passingMarks")
    questions: List[int]


class QuestionIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    correct_option: str = Field(alias="correctOption", min_length=1)
    options: Dict[str, str]
    exam: int

    @model_validator(mode="after")
    def _answer_is_an_option(self):
        if self.correct_option not in self.options:
            raise ValueError("correctOption must be one of the option keys")
        return self


class QuestionPatch(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: int = Field(alias="questionId")
    name: Optional[str] = None
    options: Optional[Dict[str, str]] = None
    correct_option: Optional[str] = Field(default=None, alias="correctOption")

    @field_validator("name", "options", "correct_option")
    @classmethod
    def _no_nulls(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


class QuestionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    name: str
    options: Dict[str, str]
    correct_option: str = Field(alias="correctOption")
    exam: int = Field(validation_alias="exam_id")


class ExamDetailOut(ExamOut):
    questions: List[QuestionOut]


class ExamIdIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    exam_id: int = Field(alias="examId")


class QuestionDeleteIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    question_id: int = Field(alias="questionId")
    exam_id: int = Field(alias="examId")


class GenerateAndSaveIn(GenerationRequest):
    name: str = Field(min_length=1)
    duration: int = 0
    category: Optional[str] = None
    total_marks: int = Field(default=0, alias="totalMarks")
    passing_marks: int = Field(default=0, alias="passingMarks")

    def exam_meta(self) -> ExamMeta:
        return ExamMeta(
            name=self.name,
            duration=self.duration,
            category=self.category if self.category is not None else self.text,
            total_marks=self.total_marks,
            passing_marks=self.passing_marks,
        )
