"""
Progress Tracking Module
========================

This module follows students and classes across several saved exam analyses:
per-exam history, per-outcome history, overall trend and a dashboard summary.
Storage of the analyses is left to the caller.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from analytics.metrics import DEFAULT_FAIL_THRESHOLD, pass_rate, safe_percent
from models.exam_models import SavedAnalysis

IMPROVING = "improving"
STABLE = "stable"
DECLINING = "declining"

WEAK_OUTCOME_THRESHOLD = 60.0
SUMMARY_SIZE = 5


@dataclass
class ExamRecord:
    analysis_id: str
    date: str
    subject: str
    exam_type: str
    score: float
    percentage: float
    class_average: float
    rank: int
    total_students: int


@dataclass
class OutcomePoint:
    date: str
    success_rate: float
    is_failed: Optional[bool] = None


@dataclass
class OutcomeHistory:
    outcome_code: str
    outcome_description: str
    history: List[OutcomePoint] = field(default_factory=list)


@dataclass
class StudentProgress:
    student_id: str
    student_name: str
    class_name: str
    exam_history: List[ExamRecord] = field(default_factory=list)
    outcome_progress: List[OutcomeHistory] = field(default_factory=list)
    overall_trend: str = STABLE
    average_percentage: float = 0.0


@dataclass
class ClassExamRecord:
    analysis_id: str
    date: str
    exam_type: str
    class_average: float
    highest_score: float
    lowest_score: float
    pass_rate: float
    student_count: int


@dataclass
class ClassProgress:
    class_name: str
    subject: str
    exam_history: List[ClassExamRecord] = field(default_factory=list)
    outcome_progress: List[OutcomeHistory] = field(default_factory=list)
    overall_trend: str = STABLE


@dataclass
class DashboardSummary:
    total_analyses: int
    total_students: int
    total_classes: int
    recent_analyses: List[SavedAnalysis]
    top_students: List[dict]
    class_performance: List[dict]
    weak_outcomes: List[dict]


def calculate_trend(values: Sequence[float], delta: float = 5) -> str:
    """
    Compares the first and last of the three most recent values.
    A rise of more than `delta` points is improving, a fall of more than
    `delta` is declining.
    """
    recent = list(values)[-3:]
    if len(recent) < 2:
        return STABLE

    diff = recent[-1] - recent[0]
    if diff > delta:
        return IMPROVING
    if diff < -delta:
        return DECLINING
    return STABLE


def _chronological(analyses: Sequence[SavedAnalysis]) -> List[SavedAnalysis]:
    return sorted(analyses, key=lambda a: a.metadata.date)


def _outcome_entry(progress_list: List[OutcomeHistory], code: str, description: str) -> OutcomeHistory:
    entry = next((op for op in progress_list if op.outcome_code == code), None)
    if entry is None:
        entry = OutcomeHistory(outcome_code=code, outcome_description=description)
        progress_list.append(entry)
    return entry


def _student_outcome_rates(saved: SavedAnalysis, student) -> Dict[str, Tuple[str, float]]:
    """code -> (description, student's mean success rate on the code's questions)"""
    grouped: Dict[str, List[float]] = {}
    descriptions: Dict[str, str] = {}
    for question in saved.questions:
        code = question.outcome.code
        if not code or not code.strip():
            continue
        grouped.setdefault(code, []).append(
            safe_percent(student.score_for(question.id), question.max_score))
        descriptions.setdefault(code, question.outcome.description)
    return {code: (descriptions[code], sum(rates) / len(rates)) for code, rates in grouped.items()}


def build_student_progress(analyses: Sequence[SavedAnalysis],
                           trend_delta: float = 5) -> Dict[Tuple[str, str], StudentProgress]:
    """Student progress keyed by (student name, class name)."""
    progress_map: Dict[Tuple[str, str], StudentProgress] = {}

    for saved in _chronological(analyses):
        class_name = saved.metadata.class_name
        stats_by_id = {s.student_id: s for s in saved.analysis.student_stats}

        def total_of(student):
            stat = stats_by_id.get(student.id)
            return stat.total_score if stat else 0

        # stable sort: equal totals keep roster order
        ranking = sorted(saved.students, key=total_of, reverse=True)
        ranks = {}
        for position, student in enumerate(ranking, start=1):
            ranks.setdefault(student.id, position)

        for student in saved.students:
            stat = stats_by_id.get(student.id)
            key = (student.name, class_name)
            if key not in progress_map:
                progress_map[key] = StudentProgress(
                    student_id=student.id, student_name=student.name, class_name=class_name)
            progress = progress_map[key]

            progress.exam_history.append(ExamRecord(
                analysis_id=saved.id,
                date=saved.metadata.date,
                subject=saved.metadata.subject,
                exam_type=saved.metadata.exam_type,
                score=stat.total_score if stat else 0,
                percentage=stat.percentage if stat else 0,
                class_average=saved.analysis.class_average,
                rank=ranks[student.id],
                total_students=len(saved.students),
            ))

            for code, (description, rate) in _student_outcome_rates(saved, student).items():
                _outcome_entry(progress.outcome_progress, code, description).history.append(
                    OutcomePoint(date=saved.metadata.date, success_rate=rate))

    for progress in progress_map.values():
        percentages = [e.percentage for e in progress.exam_history]
        progress.average_percentage = sum(percentages) / len(percentages)
        progress.overall_trend = calculate_trend(percentages, trend_delta)

    return progress_map


def get_student_progress(analyses: Sequence[SavedAnalysis], student_name: str,
                         class_name: Optional[str] = None,
                         trend_delta: float = 5) -> Optional[StudentProgress]:
    """
    Progress of one student. Without a class name, records from every class the
    student appears in are merged, most recent exam first.
    """
    progress_map = build_student_progress(analyses, trend_delta=trend_delta)

    if class_name is not None:
        return progress_map.get((student_name, class_name))

    matches = [p for p in progress_map.values() if p.student_name == student_name]
    if not matches:
        return None
    if len(matches) == 1:
        return matches[0]

    combined = StudentProgress(
        student_id=matches[0].student_id,
        student_name=student_name,
        class_name=", ".join(m.class_name for m in matches),
        exam_history=sorted((e for m in matches for e in m.exam_history),
                            key=lambda e: e.date, reverse=True),
    )
    for match in matches:
        for op in match.outcome_progress:
            entry = _outcome_entry(combined.outcome_progress, op.outcome_code,
                                   op.outcome_description)
            entry.history.extend(op.history)

    # trend reads oldest to newest
    percentages = [e.percentage for e in reversed(combined.exam_history)]
    combined.average_percentage = sum(percentages) / len(percentages) if percentages else 0
    combined.overall_trend = calculate_trend(percentages, trend_delta)
    return combined


def build_class_progress(analyses: Sequence[SavedAnalysis],
                         pass_threshold: float = DEFAULT_FAIL_THRESHOLD,
                         trend_delta: float = 5) -> Dict[Tuple[str, str], ClassProgress]:
    """Class progress keyed by (class name, subject)."""
    progress_map: Dict[Tuple[str, str], ClassProgress] = {}

    for saved in _chronological(analyses):
        meta = saved.metadata
        key = (meta.class_name, meta.subject)
        if key not in progress_map:
            progress_map[key] = ClassProgress(class_name=meta.class_name, subject=meta.subject)
        progress = progress_map[key]

        totals = [s.total_score for s in saved.analysis.student_stats]
        percentages = [s.percentage for s in saved.analysis.student_stats]

        progress.exam_history.append(ClassExamRecord(
            analysis_id=saved.id,
            date=meta.date,
            exam_type=meta.exam_type,
            class_average=saved.analysis.class_average,
            highest_score=max(totals) if totals else 0,
            lowest_score=min(totals) if totals else 0,
            pass_rate=pass_rate(percentages, pass_threshold),
            student_count=len(saved.students),
        ))

        for outcome in saved.analysis.outcome_stats:
            _outcome_entry(progress.outcome_progress, outcome.code, outcome.description).history.append(
                OutcomePoint(date=meta.date, success_rate=outcome.success_rate,
                             is_failed=outcome.is_failed))

    for progress in progress_map.values():
        progress.overall_trend = calculate_trend(
            [e.class_average for e in progress.exam_history], trend_delta)

    return progress_map


def get_class_progress(analyses: Sequence[SavedAnalysis], class_name: str,
                       subject: Optional[str] = None,
                       pass_threshold: float = DEFAULT_FAIL_THRESHOLD,
                       trend_delta: float = 5) -> Optional[ClassProgress]:
    progress_map = build_class_progress(analyses, pass_threshold, trend_delta)

    if subject is not None:
        return progress_map.get((class_name, subject))

    matches = [p for p in progress_map.values() if p.class_name == class_name]
    if not matches:
        return None
    if len(matches) == 1:
        return matches[0]

    combined = ClassProgress(
        class_name=class_name,
        subject=", ".join(m.subject for m in matches),
        exam_history=sorted((e for m in matches for e in m.exam_history),
                            key=lambda e: e.date, reverse=True),
    )
    combined.overall_trend = calculate_trend(
        [e.class_average for e in reversed(combined.exam_history)], trend_delta)
    return combined


def _trend_arrow(trend: str) -> str:
    return {IMPROVING: "up", DECLINING: "down"}.get(trend, "stable")


def build_dashboard_summary(analyses: Sequence[SavedAnalysis],
                            weak_threshold: float = WEAK_OUTCOME_THRESHOLD) -> DashboardSummary:
    """Headline numbers over every saved analysis."""
    unique_students = set()
    unique_classes = set()
    for saved in analyses:
        unique_classes.add(saved.metadata.class_name)
        for student in saved.students:
            unique_students.add((student.name, saved.metadata.class_name))

    student_progress = [p for p in build_student_progress(analyses).values() if p.exam_history]
    top_students = [
        {
            "name": p.student_name,
            "class_name": p.class_name,
            "average_score": p.average_percentage,
            "trend": _trend_arrow(p.overall_trend),
        }
        for p in sorted(student_progress, key=lambda p: -p.average_percentage)[:SUMMARY_SIZE]
    ]

    class_performance = []
    for p in build_class_progress(analyses).values():
        if not p.exam_history:
            continue
        class_performance.append({
            "class_name": f"{p.class_name} - {p.subject}",
            "average_score": sum(e.class_average for e in p.exam_history) / len(p.exam_history),
            "trend": _trend_arrow(p.overall_trend),
        })
    class_performance.sort(key=lambda c: -c["average_score"])

    outcome_totals: Dict[str, dict] = {}
    for saved in analyses:
        for outcome in saved.analysis.outcome_stats:
            entry = outcome_totals.setdefault(
                outcome.code, {"total": 0.0, "count": 0, "description": outcome.description})
            entry["total"] += outcome.success_rate
            entry["count"] += 1

    weak_outcomes = [
        {
            "code": code,
            "description": data["description"],
            "average_success_rate": data["total"] / data["count"],
            "frequency": data["count"],
        }
        for code, data in outcome_totals.items()
    ]
    weak_outcomes = sorted(
        (o for o in weak_outcomes if o["average_success_rate"] < weak_threshold),
        key=lambda o: o["average_success_rate"],
    )

    recent = sorted(analyses, key=lambda a: a.created_at, reverse=True)

    return DashboardSummary(
        total_analyses=len(analyses),
        total_students=len(unique_students),
        total_classes=len(unique_classes),
        recent_analyses=recent[:SUMMARY_SIZE],
        top_students=top_students,
        class_performance=class_performance[:SUMMARY_SIZE],
        weak_outcomes=weak_outcomes[:SUMMARY_SIZE],
    )


def filter_analyses(analyses: Sequence[SavedAnalysis], class_name: Optional[str] = None,
                    subject: Optional[str] = None, start_date: Optional[str] = None,
                    end_date: Optional[str] = None,
                    search_text: Optional[str] = None) -> List[SavedAnalysis]:
    result = list(analyses)

    if class_name:
        result = [a for a in result if a.metadata.class_name == class_name]
    if subject:
        result = [a for a in result if a.metadata.subject == subject]
    if start_date:
        result = [a for a in result if a.created_at >= start_date]
    if end_date:
        result = [a for a in result if a.created_at <= end_date]
    if search_text:
        needle = search_text.lower()
        result = [
            a for a in result
            if needle in a.metadata.class_name.lower()
            or needle in a.metadata.subject.lower()
            or needle in a.metadata.school_name.lower()
            or any(needle in s.name.lower() for s in a.students)
        ]

    return result
