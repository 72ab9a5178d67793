"""
Snapshot and Pasted-Table Parser Module
=======================================

This module converts external exam data into the models used by the analysis:
saved snapshot dictionaries (JSON with camelCase keys) and score tables pasted
from a spreadsheet or word processor.
"""

import json
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Mapping, Sequence

from analytics.metrics import compute_analysis
from models.exam_models import (
    AnalysisResult, ExamMetadata, LearningOutcome, OutcomeStat, QuestionConfig,
    QuestionStat, SavedAnalysis, Student, StudentStat
)

logger = logging.getLogger(__name__)

METADATA_FIELDS = {
    "grade": "grade",
    "subject": "subject",
    "scenario": "scenario",
    "schoolName": "school_name",
    "teacherName": "teacher_name",
    "academicYear": "academic_year",
    "className": "class_name",
    "date": "date",
    "term": "term",
    "examNumber": "exam_number",
    "examType": "exam_type",
    "district": "district",
    "province": "province",
    "schoolType": "school_type",
}


class SnapshotFormatError(ValueError):
    """Raised when a snapshot cannot be turned into exam models."""


def _number(value: Any, what: str) -> float:
    if isinstance(value, bool):
        raise SnapshotFormatError(f"{what} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError):
        raise SnapshotFormatError(f"{what} must be a number, got {value!r}") from None


def _integer(value: Any, what: str) -> int:
    number = _number(value, what)
    if not number.is_integer():
        raise SnapshotFormatError(f"{what} must be an integer, got {value!r}")
    return int(number)


def _mapping(value: Any, what: str) -> Mapping:
    if not isinstance(value, Mapping):
        raise SnapshotFormatError(f"{what} must be a JSON object, got {type(value).__name__}")
    return value


def _list(value: Any, what: str) -> list:
    if not isinstance(value, list):
        raise SnapshotFormatError(f"{what} must be a JSON array, got {type(value).__name__}")
    return value


def _outcome(data: Mapping) -> LearningOutcome:
    data = _mapping(data or {}, "outcome")
    return LearningOutcome(code=str(data.get("code") or ""),
                           description=str(data.get("description") or ""))


def parse_question(data: Mapping) -> QuestionConfig:
    data = _mapping(data, "question")
    question_id = _integer(data.get("id"), "question id")
    return QuestionConfig(
        id=question_id,
        order=_integer(data.get("order", question_id), f"order of question {question_id}"),
        max_score=_number(data.get("maxScore"), f"maxScore of question {question_id}"),
        outcome=_outcome(data.get("outcome")),
        cognitive_level=data.get("cognitiveLevel"),
        difficulty=data.get("difficulty"),
    )


def parse_student(data: Mapping) -> Student:
    data = _mapping(data, "student")
    student_id = str(data.get("id", ""))
    scores = {}
    raw_scores = _mapping(data.get("scores") or {}, f"scores of student {student_id}")
    for key, value in raw_scores.items():
        if value is None:
            continue
        question_id = _integer(key, f"question key of student {student_id}")
        scores[question_id] = _number(value, f"score of student {student_id} for question {key}")

    return Student(
        id=student_id,
        name=str(data.get("name", "")),
        scores=scores,
        student_number=data.get("student_number"),
    )


def parse_analysis(data: Mapping) -> AnalysisResult:
    return AnalysisResult(
        question_stats=[
            QuestionStat(
                question_id=int(q["questionId"]),
                average_score=float(q["averageScore"]),
                success_rate=float(q["successRate"]),
                outcome=_outcome(q.get("outcome")),
            ) for q in data.get("questionStats", [])
        ],
        outcome_stats=[
            OutcomeStat(
                code=str(o["code"]),
                description=str(o.get("description", "")),
                success_rate=float(o["successRate"]),
                is_failed=bool(o["isFailed"]),
            ) for o in data.get("outcomeStats", [])
        ],
        student_stats=[
            StudentStat(
                student_id=str(s["studentId"]),
                total_score=float(s["totalScore"]),
                percentage=float(s["percentage"]),
            ) for s in data.get("studentStats", [])
        ],
        class_average=float(data.get("classAverage", 0)),
        total_questions=int(data.get("totalQuestions", 0)),
    )


def parse_snapshot(data: Any) -> SavedAnalysis:
    """
    Builds a SavedAnalysis from a snapshot dictionary.
    The stored analysis is used when present, otherwise it is computed.
    """
    if not isinstance(data, Mapping):
        raise SnapshotFormatError("Snapshot must be a JSON object.")

    meta = _mapping(data.get("metadata") or {}, "metadata")
    metadata = ExamMetadata(**{attr: str(meta[key]) for key, attr in METADATA_FIELDS.items()
                               if meta.get(key) is not None})

    questions = [parse_question(q) for q in _list(data.get("questions") or [], "questions")]
    students = [parse_student(s) for s in _list(data.get("students") or [], "students")]

    if data.get("analysis"):
        try:
            analysis = parse_analysis(_mapping(data["analysis"], "analysis"))
        except SnapshotFormatError:
            raise
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise SnapshotFormatError(f"Invalid analysis section: {e}") from e
    else:
        analysis = compute_analysis(questions, students)

    now = datetime.now().isoformat()
    return SavedAnalysis(
        id=str(data.get("id") or uuid.uuid4()),
        created_at=str(data.get("createdAt") or now),
        updated_at=str(data.get("updatedAt") or now),
        metadata=metadata,
        analysis=analysis,
        questions=questions,
        students=students,
        ai_summary=data.get("aiSummary"),
        notes=data.get("notes"),
        tags=list(data.get("tags") or []),
    )


def load_snapshot(text: str) -> SavedAnalysis:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotFormatError(f"Snapshot is not valid JSON: {e}") from e
    return parse_snapshot(data)


def snapshot_to_dict(saved: SavedAnalysis) -> Dict[str, Any]:
    """Inverse of parse_snapshot; the result is JSON-serializable."""
    meta = saved.metadata
    return {
        "id": saved.id,
        "createdAt": saved.created_at,
        "updatedAt": saved.updated_at,
        "metadata": {key: getattr(meta, attr) for key, attr in METADATA_FIELDS.items()
                     if getattr(meta, attr) is not None},
        "analysis": saved.analysis.to_dict(),
        "questions": [
            {
                "id": q.id,
                "order": q.order,
                "maxScore": q.max_score,
                "outcome": {"code": q.outcome.code, "description": q.outcome.description},
                **({"cognitiveLevel": q.cognitive_level} if q.cognitive_level else {}),
                **({"difficulty": q.difficulty} if q.difficulty else {}),
            } for q in saved.questions
        ],
        "students": [
            {
                "id": s.id,
                "name": s.name,
                # JSON object keys are strings
                "scores": {str(k): v for k, v in s.scores.items()},
                **({"student_number": s.student_number} if s.student_number else {}),
            } for s in saved.students
        ],
        "aiSummary": saved.ai_summary,
        "notes": saved.notes,
        "tags": list(saved.tags),
    }


def parse_clipboard_data(text: str) -> List[List[str]]:
    """Splits pasted text into rows; tab-separated (Excel) or comma-separated (CSV)."""
    rows = []
    for line in text.splitlines():
        if not line.strip():
            continue
        if "\t" in line:
            rows.append(line.split("\t"))
        else:
            rows.append([cell.strip() for cell in line.split(",")])
    return rows


def parse_student_names_from_clipboard(text: str) -> List[str]:
    names = (row[0].strip() for row in parse_clipboard_data(text) if row)
    return [name for name in names if name]


def _cell_to_float(cell: str) -> float:
    try:
        return float(cell.strip().replace(",", "."))
    except ValueError:
        return 0.0


def parse_scores_from_clipboard(text: str, question_count: int) -> List[Dict[str, Any]]:
    """Rows of {"student_name", "scores"}; non-numeric cells count as 0."""
    parsed = []
    for row in parse_clipboard_data(text):
        name = row[0].strip() if row else ""
        if not name:
            logger.debug("Skipping pasted row without a student name: %r", row)
            continue
        parsed.append({
            "student_name": name,
            "scores": [_cell_to_float(cell) for cell in row[1:1 + question_count]],
        })
    return parsed


def build_students_from_clipboard(text: str, questions: Sequence[QuestionConfig],
                                  clamp: bool = True) -> List[Student]:
    """
    Builds students from a pasted score table whose columns follow the question
    order. With `clamp`, scores above a question's maximum are capped.
    """
    students = []
    for idx, row in enumerate(parse_scores_from_clipboard(text, len(questions))):
        scores = {}
        for question, score in zip(questions, row["scores"]):
            if clamp and score > question.max_score:
                logger.info("Capping %s's score %s on question %s to %s",
                            row["student_name"], score, question.id, question.max_score)
                score = question.max_score
            scores[question.id] = score
        students.append(Student(id=f"s{idx + 1}", name=row["student_name"], scores=scores))
    return students
