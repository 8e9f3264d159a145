from __future__ import annotations

from fastapi import APIRouter

from . import auth, challenges, comfort_wall, emotions

router = APIRouter(prefix="/api/v1")
router.include_router(auth.router)
router.include_router(emotions.router)
router.include_router(comfort_wall.router)
router.include_router(challenges.router)
