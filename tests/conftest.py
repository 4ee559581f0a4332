import copy

import pytest

from core.auth import AuthService
from core.project_store import ProjectStore
from core.storage import MemoryStorage
from models import IdeaSubmission

SAMPLE_ANALYSIS = {
    "executiveSummary": "Drone spraying for smallholder farms. Strong demand, heavy regulation.",
    "scores": {"market": 78, "feasibility": 61, "financial": 55, "uniqueness": 47, "teamRequirement": 70},
    "financials": [
        {"year": "2025", "revenue": 40000, "cost": 90000, "profit": -50000},
        {"year": "2026", "revenue": 150000, "cost": 120000, "profit": 30000},
        {"year": "2027", "revenue": 420000, "cost": 250000, "profit": 170000},
    ],
    "marketAnalysis": "TAM of agricultural services is large; SOM limited to Punjab in year one.",
    "competitors": ["AgriDrone Co", "SkyFarm", "Local sprayers"],
    "legalSteps": [
        {"title": "Incorporate with SECP", "description": "Register a private limited company."},
        {"title": "Register with FBR", "description": "Obtain an NTN for tax filing."},
    ],
    "risks": [
        {"risk": "Aviation permits", "mitigation": "Partner with a licensed operator.", "severity": "High"},
        {"risk": "Seasonal revenue", "mitigation": "Add crop-monitoring subscriptions.", "severity": "Medium"},
    ],
    "investmentVerdict": "Invest with conditions",
    "recommendedStack": ["Python", "PostGIS", "React Native"],
    "hiringPlan": ["Drone operations lead", "Agronomist", "Field sales"],
}


@pytest.fixture(autouse=True)
def _fast_password_hashing(monkeypatch):
    monkeypatch.setenv("PASSWORD_HASH_ITERATIONS", "1000")


@pytest.fixture
def analysis_payload():
    return copy.deepcopy(SAMPLE_ANALYSIS)


@pytest.fixture
def submission():
    return IdeaSubmission(
        title="AgriTech Drone Service",
        industry="AgriTech",
        description="Crop spraying drones rented per acre to small farms.",
        target_market="Small farmers in Punjab",
        budget="Seed ($5k - $20k)",
        location="Pakistan",
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    return ProjectStore(storage)


@pytest.fixture
def auth(storage):
    return AuthService(storage, secret="test-secret")
