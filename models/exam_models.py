"""
Data Models for Exam Analysis
=============================

This module defines the data structures used to represent exam questions,
student scores and the computed analysis throughout the import, analysis and
reporting pipeline. All models are implemented as dataclasses.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class LearningOutcome:
    code: str = ""
    description: str = ""


@dataclass
class QuestionConfig:
    id: int
    order: int
    max_score: float
    outcome: LearningOutcome = field(default_factory=LearningOutcome)
    cognitive_level: Optional[str] = None  # Knowledge .. Evaluation
    difficulty: Optional[str] = None  # Easy / Medium / Hard


@dataclass
class Student:
    id: str
    name: str
    scores: Dict[int, float] = field(default_factory=dict)
    student_number: Optional[str] = None

    def score_for(self, question_id: int) -> float:
        """Recorded score for a question, 0 when nothing was entered."""
        return self.scores.get(question_id) or 0


@dataclass
class QuestionStat:
    question_id: int
    average_score: float
    success_rate: float
    outcome: LearningOutcome

    def to_dict(self) -> dict:
        return {
            "questionId": self.question_id,
            "averageScore": self.average_score,
            "successRate": self.success_rate,
            "outcome": {"code": self.outcome.code, "description": self.outcome.description},
        }


@dataclass
class OutcomeStat:
    code: str
    description: str
    success_rate: float
    is_failed: bool

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "description": self.description,
            "successRate": self.success_rate,
            "isFailed": self.is_failed,
        }


@dataclass
class StudentStat:
    student_id: str
    total_score: float
    percentage: float

    def to_dict(self) -> dict:
        return {
            "studentId": self.student_id,
            "totalScore": self.total_score,
            "percentage": self.percentage,
        }


@dataclass
class AnalysisResult:
    question_stats: List[QuestionStat] = field(default_factory=list)
    outcome_stats: List[OutcomeStat] = field(default_factory=list)
    student_stats: List[StudentStat] = field(default_factory=list)
    class_average: float = 0.0
    total_questions: int = 0

    def to_dict(self) -> dict:
        """Plain, JSON-serializable view using the report wire keys."""
        return {
            "questionStats": [s.to_dict() for s in self.question_stats],
            "outcomeStats": [s.to_dict() for s in self.outcome_stats],
            "studentStats": [s.to_dict() for s in self.student_stats],
            "classAverage": self.class_average,
            "totalQuestions": self.total_questions,
        }


@dataclass
class ExamMetadata:
    grade: str = ""
    subject: str = ""
    scenario: str = ""
    school_name: str = ""
    teacher_name: str = ""
    academic_year: str = ""
    class_name: str = ""
    date: str = ""
    term: str = "1"
    exam_number: str = "1"
    exam_type: str = "Written"
    district: Optional[str] = None
    province: Optional[str] = None
    school_type: Optional[str] = None


@dataclass
class SavedAnalysis:
    id: str
    created_at: str
    updated_at: str
    metadata: ExamMetadata
    analysis: AnalysisResult
    questions: List[QuestionConfig] = field(default_factory=list)
    students: List[Student] = field(default_factory=list)
    ai_summary: Optional[str] = None
    notes: Optional[str] = None
    tags: List[str] = field(default_factory=list)
