"""Tests for the idea analysis gateway and the submit workflow."""

import json

import pytest

import core.analysis as analysis_module
from core.analysis import (
    ANALYSIS_SCHEMA,
    AnalysisFailed,
    analyze_idea,
    analyze_idea_mock,
    run_project_analysis,
)
from core.prompts import build_system_prompt, build_user_prompt, regulatory_note
from models import AnalysisResult, IdeaSubmission, ProjectStatus, Severity


def _reply_with(monkeypatch, raw=None, error=None):
    calls = []

    def fake_chat(system_prompt, prompt, schema, schema_name="analysis"):
        calls.append({"system": system_prompt, "prompt": prompt, "schema": schema})
        if error is not None:
            raise error
        return raw

    monkeypatch.setattr(analysis_module, "chat", fake_chat)
    return calls


class TestPrompts:
    def test_user_prompt_interpolates_every_field(self, submission):
        prompt = build_user_prompt(submission)
        for value in (
            submission.title,
            submission.industry,
            submission.description,
            submission.target_market,
            submission.budget,
            submission.location,
        ):
            assert value in prompt

    def test_pakistan_names_regulators(self, submission):
        system = build_system_prompt(submission)
        assert "SECP" in system
        assert "FBR" in system

    def test_remote_location_has_no_regulator_note(self, submission):
        remote = submission.model_copy(update={"location": "Global / Remote"})
        assert regulatory_note(remote.location) == ""
        assert "SECP" not in build_system_prompt(remote)

    def test_short_keywords_match_whole_words_only(self):
        assert "Companies House" in regulatory_note("UK")
        assert regulatory_note("Ukraine") == ""


class TestAnalyzeIdea:
    def test_success_returns_typed_result(self, monkeypatch, submission, analysis_payload):
        calls = _reply_with(monkeypatch, raw=json.dumps(analysis_payload))

        result = analyze_idea(submission)

        assert isinstance(result, AnalysisResult)
        assert result.scores.team_requirement == 70
        assert [f.year for f in result.financials] == ["2025", "2026", "2027"]
        assert result.risks[0].severity == Severity.HIGH
        assert len(calls) == 1
        assert calls[0]["schema"] is ANALYSIS_SCHEMA
        assert "SECP" in calls[0]["system"]

    def test_schema_uses_wire_names(self):
        props = ANALYSIS_SCHEMA["properties"]
        assert "executiveSummary" in props
        assert "investmentVerdict" in props
        assert set(ANALYSIS_SCHEMA["required"]) >= {"scores", "financials", "risks", "hiringPlan"}

    def test_json_wrapped_in_prose_is_accepted(self, monkeypatch, submission, analysis_payload):
        raw = "Here is the analysis:\n```json\n" + json.dumps(analysis_payload) + "\n```"
        _reply_with(monkeypatch, raw=raw)

        assert analyze_idea(submission).investment_verdict == "Invest with conditions"

    def test_out_of_range_scores_and_odd_financials_are_tolerated(
        self, monkeypatch, submission, analysis_payload
    ):
        analysis_payload["scores"].update({"market": 140, "feasibility": -5, "uniqueness": "85%"})
        analysis_payload["financials"] = [
            {"year": 2027, "revenue": "$1,200", "cost": 900, "profit": 300},
            {"year": 2025, "revenue": 100, "cost": 50, "profit": 50},
        ]
        analysis_payload["risks"][1]["severity"] = "medium"
        _reply_with(monkeypatch, raw=json.dumps(analysis_payload))

        result = analyze_idea(submission)

        assert result.scores.market == 100
        assert result.scores.feasibility == 0
        assert result.scores.uniqueness == 85
        assert [f.year for f in result.financials] == ["2027", "2025"]
        assert result.financials[0].revenue == 1200
        assert result.risks[1].severity == Severity.MEDIUM

    def test_empty_response_fails(self, monkeypatch, submission):
        _reply_with(monkeypatch, raw=None)
        with pytest.raises(AnalysisFailed):
            analyze_idea(submission)

    def test_non_json_response_fails(self, monkeypatch, submission):
        _reply_with(monkeypatch, raw="Sorry, I cannot help with that.")
        with pytest.raises(AnalysisFailed):
            analyze_idea(submission)

    def test_missing_fields_fail(self, monkeypatch, submission, analysis_payload):
        del analysis_payload["scores"]
        _reply_with(monkeypatch, raw=json.dumps(analysis_payload))
        with pytest.raises(AnalysisFailed):
            analyze_idea(submission)

    def test_unknown_severity_fails(self, monkeypatch, submission, analysis_payload):
        analysis_payload["risks"][0]["severity"] = "Catastrophic"
        _reply_with(monkeypatch, raw=json.dumps(analysis_payload))
        with pytest.raises(AnalysisFailed):
            analyze_idea(submission)

    @pytest.mark.parametrize("score", ["high", None, "", [], {}])
    def test_non_numeric_score_fails(self, monkeypatch, submission, analysis_payload, score):
        analysis_payload["scores"]["market"] = score
        _reply_with(monkeypatch, raw=json.dumps(analysis_payload))
        with pytest.raises(AnalysisFailed):
            analyze_idea(submission)

    def test_network_error_fails(self, monkeypatch, submission):
        _reply_with(monkeypatch, error=ConnectionError("connection reset"))
        with pytest.raises(AnalysisFailed) as exc_info:
            analyze_idea(submission)
        assert isinstance(exc_info.value.__cause__, ConnectionError)


class TestRunProjectAnalysis:
    def test_success_completes_project(self, store, submission):
        expected = analyze_idea_mock(submission)

        project = run_project_analysis(store, submission, analyzer=lambda s: expected)

        assert project.status == ProjectStatus.COMPLETED
        assert project.analysis == expected
        assert store.get_project(project.id).status == ProjectStatus.COMPLETED

    def test_network_failure_fails_project(self, monkeypatch, store, submission):
        _reply_with(monkeypatch, error=TimeoutError("read timed out"))

        project = run_project_analysis(store, submission)

        assert project.status == ProjectStatus.FAILED
        assert project.analysis is None
        stored = store.get_project(project.id)
        assert stored.status == ProjectStatus.FAILED
        assert stored.analysis is None

    def test_unexpected_error_still_settles_project(self, store, submission):
        def broken(_submission):
            raise RuntimeError("bug")

        with pytest.raises(RuntimeError):
            run_project_analysis(store, submission, analyzer=broken)

        assert store.list_projects()[0].status == ProjectStatus.FAILED


def test_mock_analysis_mentions_submission():
    submission = IdeaSubmission(title="Tutor Match", industry="EdTech", description="Match tutors.")
    result = analyze_idea_mock(submission)
    assert "Tutor Match" in result.executive_summary
    assert len(result.financials) == 3
