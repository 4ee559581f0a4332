import logging
from io import BytesIO
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.analysis import AnalysisFailed, analyze_idea, analyze_idea_mock, run_project_analysis
from core.auth import (
    AuthError,
    AuthService,
    InvalidCredentials,
    InvalidEmail,
    InvalidSession,
    UserExists,
    WeakPassword,
)
from core.pdf_report import build_pdf_report
from core.project_store import ProjectStore
from core.scoring import overall_score, verdict_tone
from core.storage import JsonFileStorage
from models import (
    AnalysisResult,
    DashboardEntry,
    IdeaSubmission,
    LoginInput,
    Project,
    ProjectListResponse,
    ProjectStatus,
    ResetPasswordInput,
    SignupInput,
    User,
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

ANALYSIS_FAILED_MESSAGE = "Analysis failed. Please check your API key and try again."

app = FastAPI(title="Founder Validator API", version="0.1")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

bearer_scheme = HTTPBearer(auto_error=False)

_storage = JsonFileStorage()
_store = ProjectStore(_storage)
_auth = AuthService(_storage)


def get_store() -> ProjectStore:
    return _store


def get_auth() -> AuthService:
    return _auth


def get_analyzer():
    return analyze_idea


def _auth_http_error(err: AuthError) -> HTTPException:
    if isinstance(err, (InvalidEmail, WeakPassword)):
        code = status.HTTP_400_BAD_REQUEST
    elif isinstance(err, UserExists):
        code = status.HTTP_409_CONFLICT
    elif isinstance(err, (InvalidCredentials, InvalidSession)):
        code = status.HTTP_401_UNAUTHORIZED
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=str(err))


def require_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth),
) -> User:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
    try:
        return auth.verify_token(credentials.credentials)
    except AuthError as err:
        raise _auth_http_error(err) from err


def _dashboard_entry(project: Project) -> DashboardEntry:
    analysis = project.analysis
    return DashboardEntry(
        project=project,
        overall_score=overall_score(analysis),
        verdict_tone=verdict_tone(analysis.investment_verdict) if analysis else None,
    )


@app.get("/")
def root():
    return {"message": "Founder Validator API is running 🚀"}


# -- auth ------------------------------------------------------------------
@app.post("/auth/signup", response_model=User)
def signup(payload: SignupInput, auth: AuthService = Depends(get_auth)):
    try:
        return auth.signup(payload.name, payload.email, payload.password)
    except AuthError as err:
        raise _auth_http_error(err) from err


@app.post("/auth/login", response_model=User)
def login(payload: LoginInput, auth: AuthService = Depends(get_auth)):
    try:
        return auth.login(payload.email, payload.password)
    except AuthError as err:
        raise _auth_http_error(err) from err


@app.post("/auth/google", response_model=User)
def login_with_google(auth: AuthService = Depends(get_auth)):
    return auth.login_with_google()


@app.post("/auth/logout")
def logout(user: User = Depends(require_user), auth: AuthService = Depends(get_auth)):
    auth.logout()
    return {"ok": True}


@app.post("/auth/reset-password")
def reset_password(payload: ResetPasswordInput, auth: AuthService = Depends(get_auth)):
    auth.reset_password(payload.email)
    return {"message": "If an account exists for this email, a reset link has been sent."}


@app.get("/auth/me", response_model=User)
def current_user(user: User = Depends(require_user)):
    # only answers the holder of the active session token
    return user


# -- projects --------------------------------------------------------------
@app.get("/projects", response_model=ProjectListResponse)
def list_projects(store: ProjectStore = Depends(get_store)):
    return ProjectListResponse(projects=[_dashboard_entry(p) for p in store.list_projects()])


@app.post("/projects", response_model=DashboardEntry)
def create_project(
    submission: IdeaSubmission,
    user: User = Depends(require_user),
    store: ProjectStore = Depends(get_store),
    analyzer=Depends(get_analyzer),
):
    logger.info("User %s submitted %r", user.email, submission.title)
    project = run_project_analysis(store, submission, analyzer=analyzer)
    if project.status == ProjectStatus.FAILED:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"message": ANALYSIS_FAILED_MESSAGE, "projectId": project.id},
        )
    return _dashboard_entry(project)


@app.get("/projects/{project_id}", response_model=DashboardEntry)
def get_project(project_id: str, store: ProjectStore = Depends(get_store)):
    project = store.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    return _dashboard_entry(project)


@app.get("/projects/{project_id}/report.pdf")
def export_pdf(project_id: str, store: ProjectStore = Depends(get_store)):
    project = store.get_project(project_id)
    if project is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found")
    if project.status != ProjectStatus.COMPLETED:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Project is {project.status.value}, no report to export",
        )
    buffer = BytesIO(build_pdf_report(project))
    headers = {"Content-Disposition": 'attachment; filename="investor-report.pdf"'}
    return StreamingResponse(buffer, media_type="application/pdf", headers=headers)


# -- gateway only ----------------------------------------------------------
@app.post("/analyze", response_model=AnalysisResult)
def analyze_endpoint(submission: IdeaSubmission, analyzer=Depends(get_analyzer)):
    try:
        return analyzer(submission)
    except AnalysisFailed as err:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=ANALYSIS_FAILED_MESSAGE) from err


@app.post("/analyze_mock", response_model=AnalysisResult)
def analyze_mock(submission: IdeaSubmission):
    return analyze_idea_mock(submission)
