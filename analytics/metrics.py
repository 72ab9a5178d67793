"""
Analytics and Metrics Calculation Module
=========================================

This module turns question configurations and student score records into the
exam analysis: per-question, per-outcome and per-student statistics plus the
class average. It also provides the descriptive statistics and tabular views
used by the report viewer.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Sequence

import pandas as pd

from models.exam_models import (
    AnalysisResult, OutcomeStat, QuestionConfig, QuestionStat, Student, StudentStat
)

DEFAULT_FAIL_THRESHOLD = 50.0
DEFAULT_STRONG_THRESHOLD = 75.0


@dataclass
class ScoreSummary:
    mean: float = 0.0
    std_dev: float = 0.0
    median: float = 0.0
    maximum: float = 0.0
    minimum: float = 0.0


@dataclass
class Recommendations:
    weak_outcomes: List[OutcomeStat] = field(default_factory=list)
    strong_outcomes: List[OutcomeStat] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)


def safe_percent(value: float, maximum: float) -> float:
    """value / maximum as a 0-100 rate, 0 when the maximum is not positive."""
    return (value / maximum) * 100 if maximum > 0 else 0


def compute_analysis(questions: Sequence[QuestionConfig], students: Sequence[Student],
                     fail_threshold: float = DEFAULT_FAIL_THRESHOLD) -> AnalysisResult:
    """
    Computes the full exam analysis:
    1. Per-student total score and percentage of the exam maximum
    2. Class average of the student percentages
    3. Per-question average score and success rate
    4. Per-outcome success rate (mean over the outcome's questions) and fail flag

    Inputs are not mutated. Empty questions or students give a zeroed result.
    """
    if not questions or not students:
        return AnalysisResult()

    total_max_score = sum(q.max_score for q in questions)

    student_stats = []
    for student in students:
        total_score = sum(student.score_for(q.id) for q in questions)
        student_stats.append(StudentStat(
            student_id=student.id,
            total_score=total_score,
            percentage=safe_percent(total_score, total_max_score),
        ))

    class_average = sum(s.percentage for s in student_stats) / (len(students) or 1)

    question_stats = []
    for question in questions:
        avg = sum(s.score_for(question.id) for s in students) / (len(students) or 1)
        question_stats.append(QuestionStat(
            question_id=question.id,
            average_score=avg,
            success_rate=safe_percent(avg, question.max_score),
            outcome=question.outcome,
        ))

    # code -> [rates], first description wins; dicts keep first-appearance order
    outcome_rates: Dict[str, List[float]] = {}
    outcome_descriptions: Dict[str, str] = {}
    for stat in question_stats:
        code = stat.outcome.code
        if not code or not code.strip():
            continue
        outcome_rates.setdefault(code, []).append(stat.success_rate)
        outcome_descriptions.setdefault(code, stat.outcome.description)

    outcome_stats = []
    for code, rates in outcome_rates.items():
        success_rate = sum(rates) / len(rates)
        outcome_stats.append(OutcomeStat(
            code=code,
            description=outcome_descriptions[code],
            success_rate=success_rate,
            is_failed=success_rate < fail_threshold,
        ))

    return AnalysisResult(
        question_stats=question_stats,
        outcome_stats=outcome_stats,
        student_stats=student_stats,
        class_average=class_average,
        total_questions=len(questions),
    )


def describe_scores(values: Sequence[float]) -> ScoreSummary:
    """Mean, population standard deviation, median, max and min of a score list."""
    if len(values) == 0:
        return ScoreSummary()

    series = pd.Series(list(values), dtype="float64")
    return ScoreSummary(
        mean=float(series.mean()),
        std_dev=float(series.std(ddof=0)),
        median=float(series.median()),
        maximum=float(series.max()),
        minimum=float(series.min()),
    )


def score_histogram(percentages: Sequence[float], bins: int = 10) -> Dict[str, int]:
    """
    Counts percentages into equal-width buckets over 0-100.
    Buckets are half-open except the last one, which includes 100.
    Values outside 0-100 are not counted.
    """
    width = 100 / bins
    histogram = {}
    for i in range(bins):
        low, high = i * width, (i + 1) * width
        last = i == bins - 1
        label = f"{low:g}-{100 if last else high:g}"
        histogram[label] = sum(
            1 for p in percentages if p >= low and (p <= 100 if last else p < high)
        )
    return histogram


def pass_rate(percentages: Sequence[float], threshold: float = DEFAULT_FAIL_THRESHOLD) -> float:
    if len(percentages) == 0:
        return 0
    return sum(1 for p in percentages if p >= threshold) / len(percentages) * 100


def generate_recommendations(result: AnalysisResult,
                             fail_threshold: float = DEFAULT_FAIL_THRESHOLD,
                             strong_threshold: float = DEFAULT_STRONG_THRESHOLD) -> Recommendations:
    weak = [o for o in result.outcome_stats if o.is_failed]
    strong = [o for o in result.outcome_stats if o.success_rate >= strong_threshold]

    suggestions = []
    if result.class_average < fail_threshold:
        suggestions.append("Core outcomes show gaps across the class. "
                           "Plan topic revision and remedial sessions.")
    elif result.class_average >= strong_threshold:
        suggestions.append("The class is above the expected level. "
                           "Enrichment activities can be planned.")
    else:
        suggestions.append("Class achievement is moderate. "
                           "Individualised work can raise the class average.")

    if weak:
        suggestions.append(f"{len(weak)} outcome(s) need improvement and should be revisited.")

    return Recommendations(weak_outcomes=weak, strong_outcomes=strong, suggestions=suggestions)


def build_score_matrix(questions: Sequence[QuestionConfig], students: Sequence[Student],
                       result: AnalysisResult) -> pd.DataFrame:
    """One row per student with per-question percent, total and overall percentage."""
    stats_by_id = {s.student_id: s for s in result.student_stats}

    flat_data = []
    for student in students:
        entry = {"Student": student.name}
        for question in questions:
            entry[f"Q{question.order} (%)"] = safe_percent(student.score_for(question.id),
                                                          question.max_score)
        stat = stats_by_id.get(student.id)
        entry["Total"] = stat.total_score if stat else 0
        entry["Percentage"] = stat.percentage if stat else 0
        flat_data.append(entry)

    columns = ["Student", *(f"Q{q.order} (%)" for q in questions), "Total", "Percentage"]
    return pd.DataFrame(flat_data, columns=columns)


def build_question_frame(result: AnalysisResult) -> pd.DataFrame:
    return pd.DataFrame(
        [{
            "Question": s.question_id,
            "Outcome": s.outcome.code,
            "Average Score": s.average_score,
            "Success (%)": s.success_rate,
        } for s in result.question_stats],
        columns=["Question", "Outcome", "Average Score", "Success (%)"],
    )


def build_outcome_frame(result: AnalysisResult) -> pd.DataFrame:
    return pd.DataFrame(
        [{
            "Code": o.code,
            "Description": o.description,
            "Success (%)": o.success_rate,
            "Status": "Needs improvement" if o.is_failed else "Achieved",
        } for o in result.outcome_stats],
        columns=["Code", "Description", "Success (%)", "Status"],
    )
