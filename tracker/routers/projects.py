from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse

from tracker.domain.models import Project, ProjectUpdateParams
from tracker.repositories.sql_repository import SQLRepository

log = logging.getLogger(__name__)

router = APIRouter(tags=["projects"])
_sql_repo = SQLRepository()


@router.get("/get-all-projects")
def get_all_projects():
    return [project.to_document() for project in _sql_repo.list_projects()]


@router.post("/insert-project", response_class=PlainTextResponse)
def insert_project(payload: dict):
    project = Project.from_document(payload)
    if not project.id or not project.name:
        raise HTTPException(422, "Id and Name are required")
    if not _sql_repo.insert_project(project):
        raise HTTPException(409, f"Project {project.id} already exists")
    log.info("inserted project %s", project.id)
    return "OK"


@router.post("/update-project", response_class=PlainTextResponse)
def update_project(payload: dict):
    params = ProjectUpdateParams.from_document(payload)
    if not params.id:
        raise HTTPException(422, "Id is required")
    if not _sql_repo.update_project(params):
        raise HTTPException(404, f"Project {params.id} not found")
    return "OK"


@router.post("/delete-project", response_class=PlainTextResponse)
async def delete_project(request: Request):
    project_id = (await request.body()).decode("utf-8").strip()
    if not project_id or not _sql_repo.delete_project(project_id):
        raise HTTPException(404, f"Project {project_id} not found")
    log.info("deleted project %s", project_id)
    return "OK"
