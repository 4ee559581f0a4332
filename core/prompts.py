import re

from models import IdeaSubmission

SYSTEM_PROMPT = """
You are a senior Venture Capital Analyst and Startup Consultant.
Your goal is to validate startup ideas rigorously.
You must provide a realistic, critical, and data-backed analysis.

Rules:
- Be objective and critical, never sugarcoat a weak idea.
- Always justify your reasoning using real-world market logic.
- Financial projections cover 3 years, in USD (or converted equivalent).
- Output must be strictly valid JSON.
"""

# Location keyword -> (country, regulatory bodies to cite in the legal/market sections)
REGULATORS = {
    "pakistan": ("Pakistan", ["SECP", "FBR"]),
    "united states": ("the United States", ["SEC", "IRS", "state Secretary of State offices"]),
    "usa": ("the United States", ["SEC", "IRS", "state Secretary of State offices"]),
    "united kingdom": ("the United Kingdom", ["Companies House", "HMRC", "FCA"]),
    "uk": ("the United Kingdom", ["Companies House", "HMRC", "FCA"]),
    "india": ("India", ["MCA", "SEBI", "GST Council"]),
}


def regulatory_note(location: str) -> str:
    text = (location or "").lower()
    for keyword, (country, bodies) in REGULATORS.items():
        if re.search(rf"\b{re.escape(keyword)}\b", text):
            return (
                f"If the location involves {country}, specifically mention "
                f"{', '.join(bodies)}, and local market nuances in the legal/market sections."
            )
    return ""


def build_system_prompt(submission: IdeaSubmission) -> str:
    note = regulatory_note(submission.location)
    if not note:
        return SYSTEM_PROMPT
    return f"{SYSTEM_PROMPT}{note}\n"


def build_user_prompt(submission: IdeaSubmission) -> str:
    return f"""
    Analyze the following startup idea:
    Title: {submission.title}
    Industry: {submission.industry}
    Description: {submission.description}
    Target Market: {submission.target_market}
    Budget/Stage: {submission.budget}
    Target Location: {submission.location}

    Provide a professional investor-grade analysis. Be critical.
    """
