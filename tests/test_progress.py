import unittest
from pathlib import Path

import sys
sys.path.append(str(Path(__file__).parent.parent))

from analytics.metrics import compute_analysis
from analytics.progress import (
    DECLINING, IMPROVING, STABLE, build_class_progress, build_dashboard_summary,
    build_student_progress, calculate_trend, filter_analyses, get_class_progress,
    get_student_progress
)
from models.exam_models import ExamMetadata, LearningOutcome, QuestionConfig, SavedAnalysis, Student

Q1 = QuestionConfig(id=1, order=1, max_score=10, outcome=LearningOutcome("A", "Outcome A"))
Q2 = QuestionConfig(id=2, order=2, max_score=10, outcome=LearningOutcome("B", "Outcome B"))
Q3 = QuestionConfig(id=3, order=3, max_score=10, outcome=LearningOutcome("C", "Outcome C"))


def make_saved(analysis_id, class_name, date, questions, students, subject="Mathematics"):
    return SavedAnalysis(
        id=analysis_id,
        created_at=f"{date}T09:00:00",
        updated_at=f"{date}T09:00:00",
        metadata=ExamMetadata(subject=subject, class_name=class_name, date=date,
                              school_name="Hill School"),
        analysis=compute_analysis(questions, students),
        questions=list(questions),
        students=list(students),
    )


def class_a_exam(analysis_id, date, ann, ben):
    return make_saved(analysis_id, "7-A", date, [Q1, Q2], [
        Student(id="a1", name="Ann", scores={1: ann, 2: ann}),
        Student(id="a2", name="Ben", scores={1: ben, 2: ben}),
    ])


class TestTrend(unittest.TestCase):

    def test_short_histories_are_stable(self):
        self.assertEqual(calculate_trend([]), STABLE)
        self.assertEqual(calculate_trend([90]), STABLE)

    def test_uses_last_three_values(self):
        self.assertEqual(calculate_trend([0, 50, 52, 58]), IMPROVING)
        self.assertEqual(calculate_trend([100, 50, 52, 54]), STABLE)
        self.assertEqual(calculate_trend([70, 60, 50]), DECLINING)

    def test_boundary_is_not_a_trend(self):
        self.assertEqual(calculate_trend([70, 75]), STABLE)
        self.assertEqual(calculate_trend([70, 65]), STABLE)
        self.assertEqual(calculate_trend([70, 75.5]), IMPROVING)


class TestProgress(unittest.TestCase):

    def setUp(self):
        # Deliberately out of chronological order
        self.analyses = [
            class_a_exam("e3", "2025-03-10", ann=8, ben=5),
            class_a_exam("e1", "2025-01-10", ann=4, ben=10),
            class_a_exam("e2", "2025-02-10", ann=6, ben=9),
            make_saved("b1", "7-B", "2025-04-01", [Q1, Q3], [
                Student(id="b1", name="Ann", scores={1: 10, 3: 2}),
            ]),
        ]
        self.class_a = self.analyses[:3]

    def test_student_history_is_chronological(self):
        progress = build_student_progress(self.class_a)

        ann = progress[("Ann", "7-A")]
        self.assertEqual([e.analysis_id for e in ann.exam_history], ["e1", "e2", "e3"])
        self.assertEqual([round(e.percentage, 6) for e in ann.exam_history], [40, 60, 80])
        self.assertEqual([e.score for e in ann.exam_history], [8, 12, 16])
        self.assertEqual(ann.overall_trend, IMPROVING)
        self.assertAlmostEqual(ann.average_percentage, 60)

        ben = progress[("Ben", "7-A")]
        self.assertEqual(ben.overall_trend, DECLINING)
        self.assertAlmostEqual(ben.average_percentage, 80)

    def test_rank_and_class_context(self):
        ann = build_student_progress(self.class_a)[("Ann", "7-A")]

        self.assertEqual([e.rank for e in ann.exam_history], [2, 2, 1])
        self.assertEqual(ann.exam_history[0].total_students, 2)
        self.assertAlmostEqual(ann.exam_history[0].class_average, 70)

    def test_ties_keep_roster_order(self):
        saved = make_saved("t", "7-C", "2025-01-01", [Q1], [
            Student(id="x", name="Xavier", scores={1: 5}),
            Student(id="y", name="Yara", scores={1: 5}),
        ])

        progress = build_student_progress([saved])

        self.assertEqual(progress[("Xavier", "7-C")].exam_history[0].rank, 1)
        self.assertEqual(progress[("Yara", "7-C")].exam_history[0].rank, 2)

    def test_student_outcome_history(self):
        ann = build_student_progress(self.class_a)[("Ann", "7-A")]

        codes = [op.outcome_code for op in ann.outcome_progress]
        self.assertEqual(codes, ["A", "B"])
        self.assertEqual([round(p.success_rate, 6) for p in ann.outcome_progress[0].history], [40, 60, 80])
        self.assertEqual(ann.outcome_progress[0].outcome_description, "Outcome A")

    def test_get_student_progress_for_class(self):
        ann = get_student_progress(self.analyses, "Ann", "7-B")

        self.assertEqual(ann.class_name, "7-B")
        self.assertEqual(len(ann.exam_history), 1)
        self.assertAlmostEqual(ann.exam_history[0].percentage, 60)

    def test_get_student_progress_merges_classes(self):
        ann = get_student_progress(self.analyses, "Ann")

        self.assertEqual(ann.class_name, "7-A, 7-B")
        self.assertEqual([e.date for e in ann.exam_history],
                         ["2025-04-01", "2025-03-10", "2025-02-10", "2025-01-10"])
        self.assertAlmostEqual(ann.average_percentage, 60)
        self.assertEqual(ann.overall_trend, STABLE)
        self.assertEqual([op.outcome_code for op in ann.outcome_progress], ["A", "B", "C"])
        self.assertEqual(len(ann.outcome_progress[0].history), 4)

    def test_get_unknown_student(self):
        self.assertIsNone(get_student_progress(self.analyses, "Nobody"))
        self.assertIsNone(get_student_progress(self.analyses, "Ben", "7-B"))

    def test_class_progress(self):
        progress = build_class_progress(self.analyses)

        class_a = progress[("7-A", "Mathematics")]
        self.assertEqual([round(e.class_average, 6) for e in class_a.exam_history], [70, 75, 65])
        first = class_a.exam_history[0]
        self.assertEqual((first.highest_score, first.lowest_score), (20, 8))
        self.assertEqual(first.pass_rate, 50)
        self.assertEqual(first.student_count, 2)
        self.assertEqual(class_a.overall_trend, STABLE)

        outcome_a = class_a.outcome_progress[0]
        self.assertEqual(outcome_a.outcome_code, "A")
        self.assertEqual([round(p.success_rate, 6) for p in outcome_a.history], [70, 75, 65])
        self.assertEqual([p.is_failed for p in outcome_a.history], [False, False, False])

    def test_get_class_progress(self):
        self.assertEqual(get_class_progress(self.analyses, "7-B").subject, "Mathematics")
        self.assertIsNotNone(get_class_progress(self.analyses, "7-A", "Mathematics"))
        self.assertIsNone(get_class_progress(self.analyses, "7-A", "History"))

    def test_get_class_progress_merges_subjects(self):
        history = make_saved("h1", "7-A", "2025-05-01", [Q1], [
            Student(id="a1", name="Ann", scores={1: 10}),
        ], subject="History")

        combined = get_class_progress(self.class_a + [history], "7-A")

        self.assertEqual(combined.subject, "Mathematics, History")
        self.assertEqual(combined.exam_history[0].date, "2025-05-01")
        self.assertEqual(len(combined.exam_history), 4)
        # class averages 75, 65 then 100
        self.assertEqual(combined.overall_trend, IMPROVING)
        self.assertEqual(get_class_progress(self.class_a + [history], "7-A", trend_delta=30).overall_trend,
                         STABLE)

    def test_get_student_progress_merge_uses_trend_delta(self):
        analyses = [
            make_saved("x1", "7-X", "2025-01-01", [Q1], [Student(id="z", name="Zed", scores={1: 5})]),
            make_saved("y1", "7-Y", "2025-02-01", [Q1], [Student(id="z", name="Zed", scores={1: 5.2})]),
            make_saved("y2", "7-Y", "2025-03-01", [Q1], [Student(id="z", name="Zed", scores={1: 5.3})]),
        ]

        self.assertEqual(get_student_progress(analyses, "Zed").overall_trend, STABLE)
        self.assertEqual(get_student_progress(analyses, "Zed", trend_delta=1).overall_trend, IMPROVING)

    def test_dashboard_summary(self):
        summary = build_dashboard_summary(self.analyses)

        self.assertEqual(summary.total_analyses, 4)
        self.assertEqual(summary.total_students, 3)
        self.assertEqual(summary.total_classes, 2)
        self.assertEqual(summary.recent_analyses[0].id, "b1")

        self.assertEqual(summary.top_students[0]["name"], "Ben")
        self.assertEqual(summary.top_students[0]["trend"], "down")
        self.assertEqual(len(summary.top_students), 3)

        self.assertEqual([c["class_name"] for c in summary.class_performance],
                         ["7-A - Mathematics", "7-B - Mathematics"])
        self.assertAlmostEqual(summary.class_performance[0]["average_score"], 70)

        self.assertEqual(len(summary.weak_outcomes), 1)
        weak = summary.weak_outcomes[0]
        self.assertEqual((weak["code"], weak["frequency"]), ("C", 1))
        self.assertAlmostEqual(weak["average_success_rate"], 20)

    def test_empty_summary(self):
        summary = build_dashboard_summary([])
        self.assertEqual(summary.total_analyses, 0)
        self.assertEqual(summary.top_students, [])
        self.assertEqual(summary.weak_outcomes, [])

    def test_filter_analyses(self):
        self.assertEqual(len(filter_analyses(self.analyses, class_name="7-B")), 1)
        self.assertEqual(len(filter_analyses(self.analyses, subject="Mathematics")), 4)
        self.assertEqual(len(filter_analyses(self.analyses, search_text="BEN")), 3)
        self.assertEqual(len(filter_analyses(self.analyses, search_text="hill")), 4)
        self.assertEqual(
            [a.id for a in filter_analyses(self.analyses, start_date="2025-02-01",
                                           end_date="2025-03-31")],
            ["e3", "e2"])


if __name__ == '__main__':
    unittest.main()
