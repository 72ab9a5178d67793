"""
UI
==

This module implements the read-only exam report UI. Every rerun recomputes the
analysis from the uploaded snapshots.
"""

import streamlit as st

from analytics.metrics import (
    build_outcome_frame, build_question_frame, build_score_matrix, describe_scores,
    generate_recommendations
)
from analytics.progress import build_class_progress, build_dashboard_summary, build_student_progress
from config.settings import settings
from dashboard.charts import (
    outcome_status_chart, outcome_success_chart, progress_chart, question_success_chart,
    score_histogram_chart
)
from dashboard.data_management import (
    collect_issues, export_snapshot_json, load_uploaded_snapshots, recompute, snapshot_file_name
)


def render_sidebar():
    with st.sidebar:
        st.title("📊 Exam Analysis")
        st.header("Data")
        uploaded = st.file_uploader("Snapshot files (JSON)", type=["json"],
                                    accept_multiple_files=True)

        st.divider()
        st.subheader("Settings")
        fail_threshold = st.slider("Fail threshold (%)", 0, 100, int(settings.FAIL_THRESHOLD))

        with st.expander("📋 Paste scores"):
            st.write("One row per student: name, then one score per question in order. "
                     "Replaces the students of the selected snapshot.")
            pasted = st.text_area("Scores", value="", height=150)

    return uploaded, fail_threshold, pasted


def render_top_indicators(saved):
    result = saved.analysis
    summary = describe_scores([s.total_score for s in result.student_stats])
    failed = sum(1 for o in result.outcome_stats if o.is_failed)

    with st.container():
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Students", len(result.student_stats))
        c2.metric("Class Average", f"{result.class_average:.1f}%")
        c3.metric("Median Score", f"{summary.median:.1f}",
                  help=f"Std dev {summary.std_dev:.2f}, max {summary.maximum:g}, min {summary.minimum:g}")
        c4.metric("Failed Outcomes", f"{failed} / {len(result.outcome_stats)}")


def render_issues(saved):
    issues = collect_issues(saved)
    if issues:
        with st.expander(f"⚠️ Data issues ({len(issues)})", expanded=False):
            for issue in issues:
                st.warning(issue.message)


def render_outcomes(saved, fail_threshold):
    st.subheader("🎯 Outcomes")
    result = saved.analysis
    if not result.outcome_stats:
        st.info("No outcome codes assigned.")
        return

    column1, column2 = st.columns([3, 1])
    with column1:
        st.plotly_chart(outcome_success_chart(result, fail_threshold, settings.STRONG_THRESHOLD),
                        width="stretch", key="outcome_success")
    with column2:
        st.plotly_chart(outcome_status_chart(result), width="stretch", key="outcome_status")

    st.dataframe(build_outcome_frame(result), width="stretch", hide_index=True)


def render_questions(saved, fail_threshold):
    st.subheader("❓ Questions")
    result = saved.analysis
    st.plotly_chart(question_success_chart(result, fail_threshold, settings.STRONG_THRESHOLD),
                    width="stretch", key="question_success")
    st.dataframe(build_question_frame(result), width="stretch", hide_index=True)


def render_students(saved):
    st.subheader("👩‍🎓 Students")
    st.plotly_chart(score_histogram_chart(saved.analysis), width="stretch", key="histogram")

    matrix_df = build_score_matrix(saved.questions, saved.students, saved.analysis)
    percent_columns = [c for c in matrix_df.columns if c.endswith("(%)")] + ["Percentage"]
    st.dataframe(
        matrix_df.set_index("Student")
        .style.background_gradient(cmap="RdYlGn", vmin=0, vmax=100, subset=percent_columns)
        .format(precision=1),
        width="stretch"
    )


def render_recommendations(saved, fail_threshold):
    recommendations = generate_recommendations(saved.analysis, fail_threshold,
                                               settings.STRONG_THRESHOLD)
    st.subheader("💡 Recommendations")
    for suggestion in recommendations.suggestions:
        st.write(f"- {suggestion}")

    if recommendations.weak_outcomes:
        st.write("**Needs improvement:** " +
                 ", ".join(o.code for o in recommendations.weak_outcomes))
    if recommendations.strong_outcomes:
        st.write("**Strong:** " + ", ".join(o.code for o in recommendations.strong_outcomes))


def render_progress(analyses):
    st.divider()
    st.header("📈 Progress Across Exams")
    summary = build_dashboard_summary(analyses, settings.WEAK_OUTCOME_THRESHOLD)

    c1, c2, c3 = st.columns(3)
    c1.metric("Analyses", summary.total_analyses)
    c2.metric("Students", summary.total_students)
    c3.metric("Classes", summary.total_classes)

    if summary.weak_outcomes:
        st.write("**Weakest outcomes**")
        st.dataframe(summary.weak_outcomes, width="stretch")

    for (class_name, subject), progress in build_class_progress(
            analyses, trend_delta=settings.TREND_DELTA).items():
        with st.expander(f"{class_name} - {subject} ({progress.overall_trend})", expanded=False):
            st.plotly_chart(progress_chart(progress.exam_history, "class_average", "Class Average"),
                            width="stretch", key=f"class_{class_name}_{subject}")

    student_progress = build_student_progress(analyses, trend_delta=settings.TREND_DELTA)
    names = sorted(f"{name} ({class_name})" for name, class_name in student_progress)
    selected = st.selectbox("Student", names) if names else None
    if selected:
        key = next(k for k in student_progress if f"{k[0]} ({k[1]})" == selected)
        progress = student_progress[key]
        st.metric("Average", f"{progress.average_percentage:.1f}%", progress.overall_trend)
        st.plotly_chart(progress_chart(progress.exam_history, "percentage", "Percentage"),
                        width="stretch", key=f"student_{selected}")


def run_dashboard():
    st.set_page_config(page_title=settings.PAGE_TITLE, layout="wide")

    uploaded, fail_threshold, pasted = render_sidebar()
    analyses = load_uploaded_snapshots(uploaded)

    if not analyses:
        st.info("Upload one or more exam snapshot files in the sidebar.")
        return

    labels = [f"{a.metadata.class_name or '?'} / {a.metadata.subject or '?'} / {a.metadata.date or a.id}"
              for a in analyses]
    index = st.selectbox("Exam", range(len(analyses)), format_func=lambda i: labels[i])

    saved = recompute(analyses[index], fail_threshold, pasted, clamp=settings.CLAMP_IMPORTED_SCORES)

    render_top_indicators(saved)
    render_issues(saved)
    render_outcomes(saved, fail_threshold)
    render_questions(saved, fail_threshold)
    render_students(saved)
    render_recommendations(saved, fail_threshold)

    st.download_button("💾 Download analysis (JSON)", export_snapshot_json(saved),
                       file_name=snapshot_file_name(saved), mime="application/json")

    if len(analyses) > 1:
        analyses = [recompute(a, fail_threshold) for a in analyses]
        render_progress(analyses)
