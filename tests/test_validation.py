import unittest
from pathlib import Path

import sys
sys.path.append(str(Path(__file__).parent.parent))

from importer.validation import (
    DIVERGENT_DESCRIPTION, DUPLICATE_QUESTION, DUPLICATE_STUDENT, NEGATIVE_SCORE,
    SCORE_ABOVE_MAX, UNKNOWN_QUESTION, find_divergent_outcome_descriptions, validate_exam
)
from models.exam_models import LearningOutcome, QuestionConfig, Student
from mock_data import mock_questions, mock_students


class TestValidation(unittest.TestCase):

    def test_clean_data_has_no_issues(self):
        self.assertEqual(validate_exam(mock_questions, mock_students), [])

    def test_reports_every_problem(self):
        questions = [
            QuestionConfig(id=1, order=1, max_score=10, outcome=LearningOutcome("A", "first")),
            QuestionConfig(id=1, order=2, max_score=10, outcome=LearningOutcome("A", "second")),
        ]
        students = [
            Student(id="s1", name="Ann", scores={1: -1}),
            Student(id="s1", name="Ben", scores={1: 11, 9: 3}),
        ]

        with self.assertLogs("importer.validation", level="WARNING") as logs:
            issues = validate_exam(questions, students)

        kinds = [issue.kind for issue in issues]
        self.assertEqual(kinds, [DUPLICATE_QUESTION, DUPLICATE_STUDENT, NEGATIVE_SCORE,
                                 SCORE_ABOVE_MAX, UNKNOWN_QUESTION, DIVERGENT_DESCRIPTION])
        self.assertEqual(len(logs.output), len(issues))
        self.assertEqual(issues[2].student_id, "s1")
        self.assertEqual(issues[4].question_id, 9)

    def test_divergent_descriptions(self):
        questions = [
            QuestionConfig(id=1, order=1, max_score=1, outcome=LearningOutcome("A", "one")),
            QuestionConfig(id=2, order=2, max_score=1, outcome=LearningOutcome("A", "two")),
            QuestionConfig(id=3, order=3, max_score=1, outcome=LearningOutcome("A", "one")),
            QuestionConfig(id=4, order=4, max_score=1, outcome=LearningOutcome("B", "same")),
            QuestionConfig(id=5, order=5, max_score=1, outcome=LearningOutcome("B", "same")),
            QuestionConfig(id=6, order=6, max_score=1, outcome=LearningOutcome("", "x")),
            QuestionConfig(id=7, order=7, max_score=1, outcome=LearningOutcome("", "y")),
        ]

        self.assertEqual(find_divergent_outcome_descriptions(questions), {"A": ["one", "two"]})


if __name__ == '__main__':
    unittest.main()
