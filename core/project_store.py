import json
import logging
import time
import uuid
from threading import RLock
from typing import Callable, List, Optional

from pydantic import ValidationError

from core.storage import KeyValueStorage
from models import AnalysisResult, IdeaSubmission, Project, ProjectStatus

logger = logging.getLogger(__name__)

PROJECTS_KEY = "founder_validator_projects"

Listener = Callable[[List[Project]], None]


def dumps_projects(projects: List[Project]) -> str:
    return json.dumps([p.model_dump(mode="json", by_alias=True) for p in projects])


def loads_projects(blob: Optional[str]) -> List[Project]:
    """
    Parse a serialized project list, most recent first.
    Malformed JSON raises ValueError; individual invalid records are skipped.
    """
    if not blob:
        return []
    data = json.loads(blob)
    if not isinstance(data, list):
        raise ValueError("stored projects must be a JSON array")

    projects: List[Project] = []
    for item in data:
        try:
            projects.append(Project.model_validate(item))
        except ValidationError as exc:
            logger.warning("Skipping invalid stored project: %s", exc)
    return projects


class ProjectStore:
    """
    Ordered list of projects (most recent first) persisted as a single blob.

    Every mutation rewrites the whole list under PROJECTS_KEY and notifies
    subscribers with the new list.
    """

    def __init__(self, storage: KeyValueStorage, key: str = PROJECTS_KEY) -> None:
        self._storage = storage
        self._key = key
        self._lock = RLock()
        self._listeners: List[Listener] = []

    # -- persistence -----------------------------------------------------
    def _load(self) -> List[Project]:
        try:
            return loads_projects(self._storage.get_item(self._key))
        except ValueError:
            # json.JSONDecodeError is a ValueError too
            logger.exception("Failed to load projects, resetting to an empty list")
            return []

    def _save(self, projects: List[Project]) -> None:
        self._storage.set_item(self._key, dumps_projects(projects))
        for listener in list(self._listeners):
            listener(list(projects))

    def _settle(self, project_id: str, **changes) -> Optional[Project]:
        with self._lock:
            projects = self._load()
            for index, project in enumerate(projects):
                if project.id != project_id:
                    continue
                if project.status != ProjectStatus.PROCESSING:
                    logger.warning(
                        "Project %s is already %s, ignoring transition",
                        project_id,
                        project.status.value,
                    )
                    return project
                updated = project.model_copy(update=changes)
                projects[index] = updated
                self._save(projects)
                return updated
            return None

    # -- reads -----------------------------------------------------------
    def list_projects(self) -> List[Project]:
        with self._lock:
            return self._load()

    def get_project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self.list_projects() if p.id == project_id), None)

    # -- writes ----------------------------------------------------------
    def create_project(self, submission: IdeaSubmission) -> Project:
        project = Project(
            id=uuid.uuid4().hex,
            created_at=int(time.time() * 1000),
            submission=submission.model_copy(),
            analysis=None,
            status=ProjectStatus.PROCESSING,
        )
        with self._lock:
            projects = self._load()
            projects.insert(0, project)
            self._save(projects)
        logger.info("Created project %s (%s)", project.id, submission.title)
        return project

    def complete_project(self, project_id: str, analysis: AnalysisResult) -> Optional[Project]:
        return self._settle(project_id, analysis=analysis, status=ProjectStatus.COMPLETED)

    def fail_project(self, project_id: str) -> Optional[Project]:
        return self._settle(project_id, status=ProjectStatus.FAILED)

    # -- observers -------------------------------------------------------
    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register `listener`; returns a function that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
