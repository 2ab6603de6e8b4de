# app/deps.py

import logging

from app.core import DEFAULT_GRID, TimeGrid
from app.errors import ForbiddenError

logger = logging.getLogger(__name__)

def require_role(user: dict, role: str):
    if user["role"] != role:
        logger.warning(f"User {user['id']} with role {user['role']} denied {role}-only action")
        raise ForbiddenError("Forbidden")

def get_grid() -> TimeGrid:
    return DEFAULT_GRID
