"""
Input validation for exam data.

The analysis accepts any well-typed input; this module reports the data-entry
problems it silently tolerates so the caller can show them before analysing.
"""

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from models.exam_models import QuestionConfig, Student

logger = logging.getLogger(__name__)

DUPLICATE_QUESTION = "duplicate_question_id"
DUPLICATE_STUDENT = "duplicate_student_id"
NEGATIVE_SCORE = "negative_score"
SCORE_ABOVE_MAX = "score_above_max"
UNKNOWN_QUESTION = "unknown_question"
DIVERGENT_DESCRIPTION = "divergent_outcome_description"


@dataclass
class ValidationIssue:
    kind: str
    message: str
    question_id: Optional[int] = None
    student_id: Optional[str] = None


def find_divergent_outcome_descriptions(questions: Sequence[QuestionConfig]) -> Dict[str, List[str]]:
    """Outcome codes used with more than one description, descriptions in order of appearance."""
    seen: Dict[str, List[str]] = {}
    for question in questions:
        code = question.outcome.code
        if not code or not code.strip():
            continue
        descriptions = seen.setdefault(code, [])
        if question.outcome.description not in descriptions:
            descriptions.append(question.outcome.description)
    return {code: found for code, found in seen.items() if len(found) > 1}


def validate_exam(questions: Sequence[QuestionConfig], students: Sequence[Student]) -> List[ValidationIssue]:
    issues = []

    for question_id, count in Counter(q.id for q in questions).items():
        if count > 1:
            issues.append(ValidationIssue(
                DUPLICATE_QUESTION, f"Question id {question_id} is used {count} times.",
                question_id=question_id))

    for student_id, count in Counter(s.id for s in students).items():
        if count > 1:
            issues.append(ValidationIssue(
                DUPLICATE_STUDENT, f"Student id {student_id!r} is used {count} times.",
                student_id=student_id))

    max_scores = {q.id: q.max_score for q in questions}
    for student in students:
        for question_id, score in student.scores.items():
            if score is None:
                continue
            if question_id not in max_scores:
                issues.append(ValidationIssue(
                    UNKNOWN_QUESTION,
                    f"{student.name} has a score for unknown question {question_id}.",
                    question_id=question_id, student_id=student.id))
                continue
            if score < 0:
                issues.append(ValidationIssue(
                    NEGATIVE_SCORE,
                    f"{student.name} has a negative score ({score}) on question {question_id}.",
                    question_id=question_id, student_id=student.id))
            elif score > max_scores[question_id]:
                issues.append(ValidationIssue(
                    SCORE_ABOVE_MAX,
                    f"{student.name} scored {score} on question {question_id} "
                    f"(max {max_scores[question_id]}).",
                    question_id=question_id, student_id=student.id))

    for code, descriptions in find_divergent_outcome_descriptions(questions).items():
        issues.append(ValidationIssue(
            DIVERGENT_DESCRIPTION,
            f"Outcome {code} has {len(descriptions)} different descriptions; "
            f"{descriptions[0]!r} is shown."))

    for issue in issues:
        logger.warning(issue.message)

    return issues
