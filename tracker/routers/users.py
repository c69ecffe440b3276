from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import PlainTextResponse

from tracker.core.errors import ValidationError
from tracker.core.security import hash_password, verify_password
from tracker.domain.models import User
from tracker.repositories.sql_repository import SQLRepository

log = logging.getLogger(__name__)

router = APIRouter(tags=["users"])
_sql_repo = SQLRepository()


@router.post("/get-user")
async def get_user(request: Request):
    user_id = (await request.body()).decode("utf-8").strip()
    user = _sql_repo.get_user(user_id) if user_id else None
    if user is None:
        raise HTTPException(404, f"User {user_id} not found")
    return user.to_document()


@router.post("/login-user")
def login_user(payload: dict):
    first_name = str(payload.get("FirstName") or "").strip()
    last_name = str(payload.get("LastName") or "").strip()
    user, stored_hash = _sql_repo.get_user_credentials(first_name, last_name)
    if user is None or not verify_password(str(payload.get("Password") or ""), stored_hash):
        log.warning("rejected login for %s %s", first_name, last_name)
        raise HTTPException(401, "Invalid credentials")
    return user.to_document()


@router.post("/register-user", response_class=PlainTextResponse)
def register_user(payload: dict):
    try:
        user = User.from_document(payload)
    except ValidationError as exc:
        raise HTTPException(422, exc.message)
    password = str(payload.get("Password") or "")
    if not user.id or not user.first_name or not user.last_name or not password:
        raise HTTPException(422, "Id, FirstName, LastName and Password are required")
    if not _sql_repo.create_user(user, hash_password(password)):
        raise HTTPException(409, "User already exists")
    log.info("registered user %s (%s)", user.full_name, user.role.value)
    return "OK"
