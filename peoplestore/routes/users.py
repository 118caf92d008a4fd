from uuid import UUID
from fastapi import APIRouter, Depends, Response
from ..schemas.users import UserCreateIn, UserUpdateIn, PasswordChangeIn, UserOut
from ..crud import (
    create_user,
    get_user_by_id,
    get_user_by_username,
    list_users,
    update_user,
    change_password,
    delete_user,
)
from ..deps import get_db
from ..models import Database
from ..security import hash_password, random_avatar_url

router = APIRouter()


@router.get('', response_model=list[UserOut])
async def get_users(db: Database = Depends(get_db)):
    return await list_users(db)


@router.post('', response_model=UserOut, status_code=201)
async def register(payload: UserCreateIn, db: Database = Depends(get_db)):
    return await create_user(
        db,
        username=payload.username,
        password=hash_password(payload.password),
        nickname=payload.nickname,
        avatar_url=payload.avatar_url or random_avatar_url(),
    )


@router.get('/by-username/{username}', response_model=UserOut)
async def get_user_named(username: str, db: Database = Depends(get_db)):
    return await get_user_by_username(db, username)


@router.get('/{user_id}', response_model=UserOut)
async def get_user(user_id: UUID, db: Database = Depends(get_db)):
    return await get_user_by_id(db, user_id)


@router.patch('/{user_id}', response_model=UserOut)
async def patch_user(user_id: UUID, payload: UserUpdateIn, db: Database = Depends(get_db)):
    fields = payload.model_dump(exclude_none=True)
    return await update_user(db, user_id, **fields)


@router.put('/{user_id}/password', status_code=204)
async def put_user_password(user_id: UUID, payload: PasswordChangeIn, db: Database = Depends(get_db)):
    await change_password(db, user_id, payload.old_password, payload.new_password)
    return Response(status_code=204)


@router.delete('/{user_id}', status_code=204)
async def remove_user(user_id: UUID, db: Database = Depends(get_db)):
    await delete_user(db, user_id)
    return Response(status_code=204)
