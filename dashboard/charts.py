"""
Charts
======

Plotly figures for the exam report.
"""

import pandas as pd
import plotly.express as px

from analytics.metrics import DEFAULT_FAIL_THRESHOLD, DEFAULT_STRONG_THRESHOLD, score_histogram

RED = "#d62728"
AMBER = "#f59e0b"
GREEN = "#2ca02c"


def success_color(rate, fail_threshold=DEFAULT_FAIL_THRESHOLD,
                  strong_threshold=DEFAULT_STRONG_THRESHOLD):
    if rate < fail_threshold:
        return RED
    if rate < strong_threshold:
        return AMBER
    return GREEN


def _success_bar(df_plot, x, fail_threshold, strong_threshold, height):
    colors = {label: success_color(rate, fail_threshold, strong_threshold)
              for label, rate in zip(df_plot[x], df_plot["Success (%)"])}

    fig = px.bar(
        df_plot,
        x=x,
        y="Success (%)",
        color=x,
        color_discrete_map=colors,
        hover_data=[c for c in df_plot.columns if c not in (x, "Success (%)")],
        category_orders={x: list(df_plot[x])},
    )
    # over-max scores can push rates above 100
    top = float(df_plot["Success (%)"].max()) if not df_plot.empty else 0
    fig.add_hline(y=fail_threshold, line_dash="dash", line_color=RED)
    fig.update_layout(
        yaxis=dict(range=[0, max(100, top)]),
        height=height,
        margin=dict(l=10, r=10, t=10, b=10),
        showlegend=False
    )
    return fig


def outcome_success_chart(result, fail_threshold=DEFAULT_FAIL_THRESHOLD,
                          strong_threshold=DEFAULT_STRONG_THRESHOLD):
    df_plot = pd.DataFrame(
        [{"Outcome": o.code, "Success (%)": o.success_rate, "Description": o.description}
         for o in result.outcome_stats],
        columns=["Outcome", "Success (%)", "Description"],
    )
    return _success_bar(df_plot, "Outcome", fail_threshold, strong_threshold, height=350)


def question_success_chart(result, fail_threshold=DEFAULT_FAIL_THRESHOLD,
                           strong_threshold=DEFAULT_STRONG_THRESHOLD):
    df_plot = pd.DataFrame(
        [{"Question": f"Q{s.question_id}", "Success (%)": s.success_rate,
          "Outcome": s.outcome.code} for s in result.question_stats],
        columns=["Question", "Success (%)", "Outcome"],
    )
    return _success_bar(df_plot, "Question", fail_threshold, strong_threshold, height=300)


def score_histogram_chart(result):
    """Distribution of student percentages in 10-point buckets."""
    histogram = score_histogram([s.percentage for s in result.student_stats])
    df_plot = pd.DataFrame({"Range": list(histogram.keys()), "Students": list(histogram.values())})

    fig = px.bar(df_plot, x="Range", y="Students")
    fig.update_layout(
        xaxis=dict(title="Percentage"),
        yaxis=dict(dtick=1),
        height=300,
        margin=dict(l=10, r=10, t=10, b=10)
    )
    return fig


def outcome_status_chart(result):
    failed = sum(1 for o in result.outcome_stats if o.is_failed)
    df_plot = pd.DataFrame({
        "Status": ["Achieved", "Needs improvement"],
        "Outcomes": [len(result.outcome_stats) - failed, failed],
    })

    fig = px.pie(
        df_plot,
        names="Status",
        values="Outcomes",
        color="Status",
        color_discrete_map={"Achieved": GREEN, "Needs improvement": RED}
    )
    fig.update_layout(height=300, margin=dict(l=10, r=10, t=10, b=10))
    return fig


def progress_chart(exam_history, value_field, label):
    """Line chart of one numeric field across an exam history, oldest first."""
    df_plot = pd.DataFrame(
        [{"Date": e.date, label: getattr(e, value_field)} for e in exam_history],
        columns=["Date", label],
    ).sort_values("Date")

    fig = px.line(df_plot, x="Date", y=label, markers=True)
    top = float(df_plot[label].max()) if not df_plot.empty else 0
    fig.update_layout(
        yaxis=dict(range=[0, max(100, top)]),
        height=250,
        margin=dict(l=10, r=10, t=10, b=10)
    )
    return fig
