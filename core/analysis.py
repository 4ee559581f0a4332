import logging
from typing import Callable

from pydantic import ValidationError

from core.mistral_client import chat
from core.project_store import ProjectStore
from core.prompts import build_system_prompt, build_user_prompt
from core.utils import safe_json_loads
from models import (
    AnalysisResult,
    FinancialYear,
    IdeaSubmission,
    LegalStep,
    Project,
    RiskItem,
    Severity,
    StartupScores,
)

logger = logging.getLogger(__name__)

# Declarative contract sent with every call; the reply is validated against the same model.
ANALYSIS_SCHEMA = AnalysisResult.model_json_schema(by_alias=True)


class AnalysisFailed(Exception):
    """The model call failed, returned nothing, or returned something unusable."""


def analyze_idea(submission: IdeaSubmission) -> AnalysisResult:
    """
    Ask the model for an investor-style analysis of one submission.
    Raises AnalysisFailed on any network, empty-response or parse problem.
    """
    try:
        raw = chat(
            build_system_prompt(submission),
            build_user_prompt(submission),
            schema=ANALYSIS_SCHEMA,
        )
        if not raw:
            raise AnalysisFailed("No response from AI")
        data = safe_json_loads(raw)
        return AnalysisResult.model_validate(data)
    except AnalysisFailed:
        logger.error("Analysis failed for %r: empty response", submission.title)
        raise
    except (ValueError, ValidationError) as exc:
        logger.error("Analysis failed for %r: unusable response (%s)", submission.title, exc)
        raise AnalysisFailed(str(exc)) from exc
    except Exception as exc:
        logger.exception("Analysis failed for %r", submission.title)
        raise AnalysisFailed(str(exc)) from exc


def analyze_idea_mock(submission: IdeaSubmission) -> AnalysisResult:
    # Stand-in for the model, handy without an API key
    return AnalysisResult(
        executive_summary=(
            f"{submission.title} targets {submission.target_market or 'an underserved segment'} "
            f"in {submission.location} with a {submission.industry} offering. "
            "Demand is real but the moat is thin."
        ),
        scores=StartupScores(market=72, feasibility=65, financial=58, uniqueness=44, team_requirement=60),
        financials=[
            FinancialYear(year="Year 1", revenue=25_000, cost=60_000, profit=-35_000),
            FinancialYear(year="Year 2", revenue=120_000, cost=110_000, profit=10_000),
            FinancialYear(year="Year 3", revenue=340_000, cost=210_000, profit=130_000),
        ],
        market_analysis=(
            "Fragmented market with a handful of regional players. "
            "SAM is limited by purchasing power; SOM depends on distribution partnerships."
        ),
        competitors=["Incumbent Co", "RegionalPlayer", "OpenSource Alternative"],
        legal_steps=[
            LegalStep(title="Register the company", description="Incorporate as a private limited company."),
            LegalStep(title="Tax registration", description="Obtain a tax number before invoicing."),
        ],
        risks=[
            RiskItem(risk="Low willingness to pay", mitigation="Start with a freemium tier.", severity=Severity.HIGH),
            RiskItem(risk="Copycat competitors", mitigation="Lock in distribution early.", severity=Severity.MEDIUM),
        ],
        investment_verdict="Pivot: narrow the target segment before raising.",
        recommended_stack=["Python", "FastAPI", "PostgreSQL"],
        hiring_plan=["Founding engineer", "Growth marketer", "Sales lead"],
    )


def run_project_analysis(
    store: ProjectStore,
    submission: IdeaSubmission,
    analyzer: Callable[[IdeaSubmission], AnalysisResult] = analyze_idea,
) -> Project:
    """
    Optimistically record a processing project, run the analysis,
    then settle the project as completed or failed. Returns the settled project.
    """
    project = store.create_project(submission)
    try:
        analysis = analyzer(submission)
    except AnalysisFailed:
        return store.fail_project(project.id) or project
    except Exception:
        store.fail_project(project.id)
        raise
    return store.complete_project(project.id, analysis) or project
