# models.py
from datetime import datetime
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from db import Base

class Exam(Base):
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), unique=True, index=True, nullable=False)
    duration = Column(Integer, nullable=False, default=0)        # minutes
    category = Column(Text, nullable=False, default="")
    total_marks = Column("totalMarks", Integer, nullable=False, default=0)
    passing_marks = Column("passingMarks", Integer, nullable=False, default=0)
    questions = Column(JSON, nullable=False, default=list)       # ordered [question_id, ...]
    created_at = Column(DateTime, default=datetime.utcnow)

    question_rows = relationship("Question", back_populates="exam", cascade="all, delete-orphan")

class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(Text, nullable=False)
    options = Column(JSON, nullable=False)                       # {"A": "...", ..., "D": "..."}
    correct_option = Column("correctOption", String(8), nullable=False)

    exam = relationship("Exam", back_populates="question_rows")
