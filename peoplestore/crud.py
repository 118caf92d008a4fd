import uuid
import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable
from sqlalchemy import select, delete, func, or_
from sqlalchemy.exc import IntegrityError

from .models import Database
from .models.users import User
from .models.humans import Human, HumanFriend
from .errors import (
    NotFound,
    DuplicateUsername,
    DuplicateFriendship,
    ReferentialIntegrityViolation,
    HasDependentFriendships,
    PasswordMismatch,
)
from .security import hash_password, verify_password

logger = logging.getLogger(__name__)

USER_FIELDS = ('username', 'password', 'nickname', 'avatar_url')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _next_timestamp(previous: datetime | None) -> datetime:
    # updated_at must move forward even if the clock has not
    now = utcnow()
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


def _unique(ids: Iterable[uuid.UUID]) -> list[uuid.UUID]:
    return list(dict.fromkeys(ids))


# users
async def create_user(db: Database, username: str, password: str, nickname: str, avatar_url: str) -> User:
    """Insert a user. ``password`` is stored as given; hash it first."""
    now = utcnow()
    user = User(
        id=uuid.uuid4(),
        username=username,
        password=password,
        nickname=nickname,
        avatar_url=avatar_url,
        created_at=now,
        updated_at=now,
    )
    async with db.session() as session:
        session.add(user)
        try:
            await session.commit()
        except IntegrityError as e:
            await session.rollback()
            logger.warning(f'Duplicate username rejected: {username}')
            raise DuplicateUsername(username) from e
    logger.info(f'User created: {user.id}')
    return user

async def get_user_by_id(db: Database, user_id: uuid.UUID) -> User:
    async with db.session() as session:
        user = await session.get(User, user_id)
        if user is None:
            raise NotFound('user', user_id)
        return user

async def get_user_by_username(db: Database, username: str) -> User:
    async with db.session() as session:
        q = await session.execute(select(User).where(User.username == username))
        user = q.scalars().first()
        if user is None:
            raise NotFound('user', username)
        return user

async def list_users(db: Database) -> list[User]:
    async with db.session() as session:
        q = await session.execute(select(User).order_by(User.username))
        return list(q.scalars().all())

async def update_user(db: Database, user_id: uuid.UUID, **fields) -> User:
    """Apply ``fields`` to a user and advance ``updated_at``.

    Accepts any of username, password, nickname and avatar_url. The password
    is stored as given. Raises NotFound or DuplicateUsername.
    """
    unknown = set(fields) - set(USER_FIELDS)
    if unknown:
        raise ValueError(f'unknown user fields: {", ".join(sorted(unknown))}')
    async with db.session() as session:
        try:
            async with session.begin():
                user = await session.get(User, user_id, with_for_update=True)
                if user is None:
                    raise NotFound('user', user_id)
                for name, value in fields.items():
                    setattr(user, name, value)
                user.updated_at = _next_timestamp(user.updated_at)
        except IntegrityError as e:
            logger.warning(f'Duplicate username rejected on update of {user_id}')
            raise DuplicateUsername(fields.get('username')) from e
    return user

async def change_password(db: Database, user_id: uuid.UUID, old_password: str, new_password: str) -> User:
    """Replace the stored hash after checking ``old_password`` against it.

    The row stays locked from the check to the write, so of two concurrent
    changes made with the same old password only the first succeeds.
    """
    async with db.session() as session:
        async with session.begin():
            user = await session.get(User, user_id, with_for_update=True)
            if user is None:
                raise NotFound('user', user_id)
            if not verify_password(old_password, user.password):
                raise PasswordMismatch()
            user.password = hash_password(new_password)
            user.updated_at = _next_timestamp(user.updated_at)
    logger.info(f'Password changed for user {user_id}')
    return user

async def delete_user(db: Database, user_id: uuid.UUID) -> None:
    async with db.session() as session:
        async with session.begin():
            res = await session.execute(delete(User).where(User.id == user_id))
            if res.rowcount == 0:
                raise NotFound('user', user_id)
    logger.info(f'User deleted: {user_id}')


# humans
async def _ensure_humans_exist(session, ids: Iterable[uuid.UUID]):
    ids = _unique(ids)
    if not ids:
        return
    res = await session.execute(select(Human.id).where(Human.id.in_(ids)))
    found = set(res.scalars().all())
    for human_id in ids:
        if human_id not in found:
            raise NotFound('human', human_id)

async def create_human(db: Database, name: str, friend_ids: Iterable[uuid.UUID] = ()) -> Human:
    """Insert a human together with one outgoing edge per friend id."""
    friend_ids = _unique(friend_ids)
    human = Human(id=uuid.uuid4(), name=name)
    async with db.session() as session:
        try:
            async with session.begin():
                await _ensure_humans_exist(session, friend_ids)
                session.add(human)
                await session.flush()
                session.add_all(HumanFriend(human_id=human.id, friend_id=f) for f in friend_ids)
        except IntegrityError as e:
            raise ReferentialIntegrityViolation(f'friend of new human {name!r} no longer exists') from e
    logger.info(f'Human created: {human.id} with {len(friend_ids)} friend(s)')
    return human

async def get_human(db: Database, human_id: uuid.UUID) -> Human:
    async with db.session() as session:
        human = await session.get(Human, human_id)
        if human is None:
            raise NotFound('human', human_id)
        return human

async def list_humans(db: Database) -> list[Human]:
    async with db.session() as session:
        q = await session.execute(select(Human).order_by(Human.name, Human.id))
        return list(q.scalars().all())

async def update_human(db: Database, human_id: uuid.UUID, name: str, friend_ids: Iterable[uuid.UUID] | None = None) -> Human:
    """Rename a human; when ``friend_ids`` is given its outgoing edges become exactly that set."""
    async with db.session() as session:
        try:
            async with session.begin():
                human = await session.get(Human, human_id, with_for_update=True)
                if human is None:
                    raise NotFound('human', human_id)
                human.name = name
                if friend_ids is not None:
                    friend_ids = _unique(friend_ids)
                    await _ensure_humans_exist(session, friend_ids)
                    await session.execute(delete(HumanFriend).where(HumanFriend.human_id == human_id))
                    session.add_all(HumanFriend(human_id=human_id, friend_id=f) for f in friend_ids)
        except IntegrityError as e:
            raise ReferentialIntegrityViolation(f'friend of human {human_id} no longer exists') from e
    return human

async def delete_human(db: Database, human_id: uuid.UUID, cascade: bool = False) -> None:
    """Delete a human.

    With the default restrict policy a human that appears on either side of
    a friendship edge is kept and HasDependentFriendships is raised. With
    ``cascade=True`` those edges are removed in the same transaction.
    """
    edges = or_(HumanFriend.human_id == human_id, HumanFriend.friend_id == human_id)
    async with db.session() as session:
        try:
            async with session.begin():
                human = await session.get(Human, human_id, with_for_update=True)
                if human is None:
                    raise NotFound('human', human_id)
                if cascade:
                    res = await session.execute(delete(HumanFriend).where(edges))
                    if res.rowcount:
                        logger.info(f'Removed {res.rowcount} friendship(s) of human {human_id}')
                else:
                    count = await session.scalar(select(func.count()).select_from(HumanFriend).where(edges))
                    if count:
                        logger.warning(f'Refusing to delete human {human_id}: {count} friendship(s) remain')
                        raise HasDependentFriendships(human_id, count)
                await session.delete(human)
        except IntegrityError as e:
            # an edge was added concurrently; the foreign key kept the row
            raise HasDependentFriendships(human_id, 1) from e
    logger.info(f'Human deleted: {human_id}')


# friendships
async def add_friendship(db: Database, human_id: uuid.UUID, friend_id: uuid.UUID) -> None:
    """Insert the directed edge human_id -> friend_id."""
    async with db.session() as session:
        try:
            async with session.begin():
                await _ensure_humans_exist(session, [human_id, friend_id])
                if await session.get(HumanFriend, (human_id, friend_id)) is not None:
                    raise DuplicateFriendship(human_id, friend_id)
                session.add(HumanFriend(human_id=human_id, friend_id=friend_id))
        except IntegrityError as e:
            # lost a race: tell a concurrent insert apart from a concurrent delete
            existing = await session.execute(
                select(HumanFriend).where(HumanFriend.human_id == human_id, HumanFriend.friend_id == friend_id)
            )
            if existing.scalars().first() is not None:
                raise DuplicateFriendship(human_id, friend_id) from e
            raise ReferentialIntegrityViolation(f'human {human_id} or {friend_id} no longer exists') from e

async def remove_friendship(db: Database, human_id: uuid.UUID, friend_id: uuid.UUID) -> None:
    async with db.session() as session:
        async with session.begin():
            res = await session.execute(
                delete(HumanFriend).where(HumanFriend.human_id == human_id, HumanFriend.friend_id == friend_id)
            )
            if res.rowcount == 0:
                raise NotFound('friendship', f'{human_id} -> {friend_id}')

async def list_friends(db: Database, human_id: uuid.UUID) -> list[Human]:
    """Humans reachable over one outgoing edge. Order is unspecified."""
    async with db.session() as session:
        q = await session.execute(
            select(Human)
            .join(HumanFriend, HumanFriend.friend_id == Human.id)
            .where(HumanFriend.human_id == human_id)
        )
        return list(q.scalars().all())
