"""Tests for scoring helpers and the PDF export."""

import pytest

from core.analysis import analyze_idea_mock
from core.pdf_report import build_pdf_report
from core.scoring import overall_score, score_breakdown, verdict_tone
from models import AnalysisResult


def test_overall_score_is_the_mean(analysis_payload):
    analysis = AnalysisResult.model_validate(analysis_payload)
    assert overall_score(analysis) == round((78 + 61 + 55 + 47 + 70) / 5, 1)
    assert overall_score(None) is None


def test_breakdown_keeps_display_order(analysis_payload):
    analysis = AnalysisResult.model_validate(analysis_payload)
    assert list(score_breakdown(analysis.scores)) == [
        "Market", "Feasibility", "Finance", "Uniqueness", "Team Effort",
    ]


@pytest.mark.parametrize(
    "verdict,tone",
    [
        ("Invest", "positive"),
        ("Pivot towards B2B", "caution"),
        ("Kill", "negative"),
        ("", "negative"),
    ],
)
def test_verdict_tone(verdict, tone):
    assert verdict_tone(verdict) == tone


def test_pdf_for_completed_project(store, submission):
    project = store.create_project(submission)
    project = store.complete_project(project.id, analyze_idea_mock(submission))

    pdf = build_pdf_report(project)

    assert pdf.startswith(b"%PDF")
    assert len(pdf) > 1000


def test_pdf_handles_sparse_and_long_analysis(store, submission, analysis_payload):
    analysis_payload["financials"] = []
    analysis_payload["competitors"] = []
    analysis_payload["risks"] = analysis_payload["risks"] * 30
    analysis_payload["marketAnalysis"] = "Long paragraph. " * 400
    project = store.create_project(submission)
    project = store.complete_project(project.id, AnalysisResult.model_validate(analysis_payload))

    assert build_pdf_report(project).startswith(b"%PDF")


def test_pdf_refuses_unfinished_project(store, submission):
    project = store.create_project(submission)
    with pytest.raises(ValueError):
        build_pdf_report(project)
