"""
Data Management
==============================

This module turns uploaded snapshot files and pasted score tables into
analyses for the UI. Nothing is written to disk.
"""
import json
import logging
from dataclasses import replace
from datetime import datetime

import streamlit as st

from analytics.metrics import compute_analysis
from importer.parser import (
    SnapshotFormatError, build_students_from_clipboard, load_snapshot, snapshot_to_dict
)
from importer.validation import validate_exam

logger = logging.getLogger(__name__)


def load_uploaded_snapshots(uploaded_files):
    """Parses every uploaded file; files that fail are reported and skipped."""
    analyses = []
    for uploaded in uploaded_files or []:
        try:
            text = uploaded.getvalue().decode("utf-8")
            analyses.append(load_snapshot(text))
        except (UnicodeDecodeError, SnapshotFormatError) as e:
            logger.warning("Could not load %s: %s", uploaded.name, e)
            st.error(f"Could not load {uploaded.name}: {e}")
    return analyses


def recompute(saved, fail_threshold, pasted_scores=None, clamp=True):
    """
    Returns a copy of the snapshot with a fresh analysis.
    Pasted scores, when given, replace the snapshot's students.
    """
    students = saved.students
    if pasted_scores and pasted_scores.strip():
        students = build_students_from_clipboard(pasted_scores, saved.questions, clamp=clamp)

    return replace(
        saved,
        students=students,
        analysis=compute_analysis(saved.questions, students, fail_threshold=fail_threshold),
        updated_at=datetime.now().isoformat(),
    )


def collect_issues(saved):
    return validate_exam(saved.questions, saved.students)


def export_snapshot_json(saved):
    return json.dumps(snapshot_to_dict(saved), indent=2, ensure_ascii=False)


def snapshot_file_name(saved):
    meta = saved.metadata
    parts = [p for p in (meta.class_name, meta.subject, meta.date) if p]
    stem = "_".join(parts).replace(" ", "_") or saved.id
    return f"exam_analysis_{stem}.json"
