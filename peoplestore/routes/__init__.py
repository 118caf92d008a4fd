from fastapi import APIRouter
from .users import router as users_router
from .humans import router as humans_router

router = APIRouter()
router.include_router(users_router, prefix='/users', tags=['users'])
router.include_router(humans_router, prefix='/humans', tags=['humans'])
