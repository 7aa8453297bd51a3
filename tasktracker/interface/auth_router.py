"""Signup, login and current-user endpoints."""

import logging

from fastapi import APIRouter, Depends, status

from tasktracker.domain.create_models import LoginRequest, UserCreate
from tasktracker.domain.user import User
from tasktracker.interface.auth_security import check_login_rate_limit, get_current_user, issue_token
from tasktracker.services import user_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(body: UserCreate) -> dict:
    """Register a user and return a bearer token."""
    user = await user_service.register_user(body)
    return {"success": True, "token": issue_token(user.id), "user": user.to_api()}


@router.post("/login", dependencies=[Depends(check_login_rate_limit)])
async def login(body: LoginRequest) -> dict:
    """Exchange email and password for a bearer token."""
    user = await user_service.authenticate(body.email, body.password)
    return {"success": True, "token": issue_token(user.id), "user": user.to_api()}


@router.get("/me")
async def me(user: User = Depends(get_current_user)) -> dict:
    """Return the authenticated user."""
    return {"success": True, "user": user.to_api()}
