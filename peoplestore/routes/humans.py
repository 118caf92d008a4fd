from uuid import UUID
from fastapi import APIRouter, Depends, Response
from ..schemas.humans import HumanIn, HumanUpdateIn, HumanOut, HumanDetailOut
from ..crud import (
    create_human,
    get_human,
    list_humans,
    update_human,
    delete_human,
    add_friendship,
    remove_friendship,
    list_friends,
)
from ..deps import get_db
from ..models import Database

router = APIRouter()


@router.get('', response_model=list[HumanOut])
async def get_humans(db: Database = Depends(get_db)):
    return await list_humans(db)


@router.post('', response_model=HumanOut, status_code=201)
async def post_human(payload: HumanIn, db: Database = Depends(get_db)):
    return await create_human(db, payload.name, payload.friend_ids)


@router.get('/{human_id}', response_model=HumanDetailOut)
async def get_human_detail(human_id: UUID, db: Database = Depends(get_db)):
    human = await get_human(db, human_id)
    friends = await list_friends(db, human_id)
    return {'id': human.id, 'name': human.name, 'friends': friends}


@router.put('/{human_id}', response_model=HumanOut)
async def put_human(human_id: UUID, payload: HumanUpdateIn, db: Database = Depends(get_db)):
    return await update_human(db, human_id, payload.name, payload.friend_ids)


@router.delete('/{human_id}', status_code=204)
async def remove_human(human_id: UUID, cascade: bool = False, db: Database = Depends(get_db)):
    await delete_human(db, human_id, cascade=cascade)
    return Response(status_code=204)


@router.get('/{human_id}/friends', response_model=list[HumanOut])
async def get_friends(human_id: UUID, db: Database = Depends(get_db)):
    # 404 for an unknown human instead of an empty list
    await get_human(db, human_id)
    return await list_friends(db, human_id)


@router.put('/{human_id}/friends/{friend_id}', status_code=204)
async def put_friend(human_id: UUID, friend_id: UUID, db: Database = Depends(get_db)):
    await add_friendship(db, human_id, friend_id)
    return Response(status_code=204)


@router.delete('/{human_id}/friends/{friend_id}', status_code=204)
async def delete_friend(human_id: UUID, friend_id: UUID, db: Database = Depends(get_db)):
    await remove_friendship(db, human_id, friend_id)
    return Response(status_code=204)
