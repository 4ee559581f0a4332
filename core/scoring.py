# core/scoring.py
from typing import Dict, Optional

from models import AnalysisResult, StartupScores

SCORE_LABELS = {
    "market": "Market",
    "feasibility": "Feasibility",
    "financial": "Finance",
    "uniqueness": "Uniqueness",
    "team_requirement": "Team Effort",
}


def score_breakdown(scores: StartupScores) -> Dict[str, int]:
    """
    Label -> value, in display order (radar chart axes).
    """
    return {label: getattr(scores, field) for field, label in SCORE_LABELS.items()}


def overall_score(analysis: Optional[AnalysisResult]) -> Optional[float]:
    """
    Plain mean of the five scores, as shown on the dashboard.
    """
    if analysis is None:
        return None
    values = list(score_breakdown(analysis.scores).values())
    return round(sum(values) / len(values), 1)


def verdict_tone(verdict: str) -> str:
    """
    'positive' for an Invest verdict, 'caution' for Pivot, 'negative' otherwise.
    Invest wins when both words appear.
    """
    text = verdict or ""
    if "Invest" in text:
        return "positive"
    if "Pivot" in text:
        return "caution"
    return "negative"
