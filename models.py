from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from core.utils import extract_int, extract_number


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire and in storage."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IdeaSubmission(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(min_length=1)
    industry: str = Field(default="SaaS", min_length=1)
    description: str = Field(min_length=1)
    target_market: str = ""
    budget: str = "Bootstrapped (< $5k)"
    location: str = "Pakistan"


class StartupScores(CamelModel):
    market: int = Field(ge=0, le=100, description="Score 0-100 based on market size/demand.")
    feasibility: int = Field(ge=0, le=100, description="Score 0-100 based on technical/operational ease.")
    financial: int = Field(ge=0, le=100, description="Score 0-100 based on profit potential.")
    uniqueness: int = Field(ge=0, le=100, description="Score 0-100 based on competitive moat.")
    team_requirement: int = Field(
        ge=0,
        le=100,
        description="Score 0-100 regarding how complex the team needs to be (higher = harder).",
    )

    @field_validator("market", "feasibility", "financial", "uniqueness", "team_requirement", mode="before")
    @classmethod
    def _clamp(cls, value):
        # LLMs sometimes answer "85%" or 120; keep whatever number is there, inside 0-100.
        number = extract_int(value)
        if isinstance(number, int) and not isinstance(number, bool):
            return max(0, min(100, number))
        return number


class FinancialYear(CamelModel):
    year: str
    revenue: float
    cost: float
    profit: float

    @field_validator("year", mode="before")
    @classmethod
    def _year_as_text(cls, value):
        return str(value) if isinstance(value, (int, float)) else value

    @field_validator("revenue", "cost", "profit", mode="before")
    @classmethod
    def _amount(cls, value):
        return extract_number(value)


class LegalStep(CamelModel):
    title: str
    description: str


class Severity(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class RiskItem(CamelModel):
    risk: str
    mitigation: str
    severity: Severity

    @field_validator("severity", mode="before")
    @classmethod
    def _normalize_severity(cls, value):
        if isinstance(value, str):
            return value.strip().capitalize()
        return value


class AnalysisResult(CamelModel):
    executive_summary: str = Field(description="A 2-3 sentence high-level summary suitable for investors.")
    scores: StartupScores
    financials: List[FinancialYear] = Field(
        description="3-year projection. Numbers in USD (or converted equivalent)."
    )
    market_analysis: str = Field(description="Deep dive into TAM/SAM/SOM and market trends.")
    competitors: List[str] = Field(description="List of 3-5 potential competitors.")
    legal_steps: List[LegalStep] = Field(
        description="Key legal registration steps specific to the target country."
    )
    risks: List[RiskItem]
    investment_verdict: str = Field(description="Final verdict: Invest, Pivot, or Kill?")
    recommended_stack: List[str] = Field(description="Tech stack recommendations.")
    hiring_plan: List[str] = Field(description="First 3 key hires.")


class ProjectStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class Project(CamelModel):
    id: str
    created_at: int = Field(description="Creation time, epoch milliseconds.")
    submission: IdeaSubmission
    analysis: Optional[AnalysisResult] = None
    status: ProjectStatus = ProjectStatus.PROCESSING

    @model_validator(mode="after")
    def _analysis_matches_status(self):
        completed = self.status == ProjectStatus.COMPLETED
        if completed != (self.analysis is not None):
            raise ValueError("analysis must be present exactly when status is 'completed'")
        return self


class User(CamelModel):
    id: str
    name: str
    email: str
    token: str
    avatar: Optional[str] = None


class SignupInput(BaseModel):
    name: str
    email: str
    password: str


class LoginInput(BaseModel):
    email: str
    password: str


class ResetPasswordInput(BaseModel):
    email: str


class DashboardEntry(CamelModel):
    project: Project
    overall_score: Optional[float] = None
    verdict_tone: Optional[str] = None


class ProjectListResponse(BaseModel):
    projects: List[DashboardEntry]
