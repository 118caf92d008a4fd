import uuid
from datetime import timedelta
import pytest

from peoplestore import crud
from peoplestore.errors import DuplicateUsername, NotFound, PasswordMismatch
from peoplestore.security import hash_password, verify_password


async def make_user(db, username='admin', password='1234'):
    return await crud.create_user(db, username, password, 'admin', 'empty.png')


class TestUserStorage:
    """User rows through the storage access layer"""

    @pytest.mark.asyncio
    async def test_create_then_get_by_username(self, db):
        user = await crud.create_user(db, 'admin', '1234', 'Admin', '/api/images/avatars/3.png')

        found = await crud.get_user_by_username(db, 'admin')
        assert found.id == user.id
        assert found.username == 'admin'
        assert found.password == '1234'
        assert found.nickname == 'Admin'
        assert found.avatar_url == '/api/images/avatars/3.png'
        assert found.created_at == user.created_at
        assert found.updated_at == found.created_at
        assert found.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_get_by_id(self, db):
        user = await make_user(db)
        found = await crud.get_user_by_id(db, user.id)
        assert found.username == 'admin'

    @pytest.mark.asyncio
    async def test_missing_user_is_not_found(self, db):
        missing = uuid.uuid4()
        with pytest.raises(NotFound) as exc:
            await crud.get_user_by_id(db, missing)
        assert exc.value.entity == 'user'
        assert exc.value.key == missing
        with pytest.raises(NotFound):
            await crud.get_user_by_username(db, 'nobody')

    @pytest.mark.asyncio
    async def test_duplicate_username_leaves_first_user_unchanged(self, db):
        first = await make_user(db, password='first')

        with pytest.raises(DuplicateUsername) as exc:
            await make_user(db, password='second')
        assert exc.value.username == 'admin'

        found = await crud.get_user_by_username(db, 'admin')
        assert found.id == first.id
        assert found.password == 'first'
        assert len(await crud.list_users(db)) == 1

    @pytest.mark.asyncio
    async def test_list_users(self, db):
        assert await crud.list_users(db) == []
        await make_user(db, username='bob')
        await make_user(db, username='alice')
        users = await crud.list_users(db)
        assert [u.username for u in users] == ['alice', 'bob']

    @pytest.mark.asyncio
    async def test_update_advances_updated_at(self, db):
        user = await make_user(db)
        previous = user.updated_at

        for nickname in ('one', 'two', 'three'):
            user = await crud.update_user(db, user.id, nickname=nickname)
            assert user.updated_at > previous
            previous = user.updated_at

        found = await crud.get_user_by_id(db, user.id)
        assert found.nickname == 'three'
        assert found.updated_at == previous
        assert found.created_at < found.updated_at

    @pytest.mark.asyncio
    async def test_updated_at_advances_with_frozen_clock(self, db, monkeypatch):
        user = await make_user(db, password=hash_password('1234'))
        frozen = user.updated_at
        monkeypatch.setattr(crud, 'utcnow', lambda: frozen)

        first = await crud.update_user(db, user.id, nickname='one')
        second = await crud.update_user(db, user.id, nickname='two')
        third = await crud.change_password(db, user.id, '1234', '4321')

        assert frozen < first.updated_at < second.updated_at < third.updated_at
        assert first.updated_at - frozen == timedelta(microseconds=1)
        assert second.updated_at - first.updated_at == timedelta(microseconds=1)
        assert (await crud.get_user_by_id(db, user.id)).updated_at == third.updated_at

    @pytest.mark.asyncio
    async def test_update_several_fields(self, db):
        user = await make_user(db)
        updated = await crud.update_user(db, user.id, username='root', avatar_url='root.png')
        assert updated.username == 'root'
        assert updated.avatar_url == 'root.png'
        assert updated.nickname == 'admin'
        assert (await crud.get_user_by_username(db, 'root')).id == user.id

    @pytest.mark.asyncio
    async def test_update_to_taken_username_fails(self, db):
        await make_user(db, username='alice')
        bob = await make_user(db, username='bob')

        with pytest.raises(DuplicateUsername):
            await crud.update_user(db, bob.id, username='alice')
        assert (await crud.get_user_by_id(db, bob.id)).username == 'bob'

    @pytest.mark.asyncio
    async def test_update_missing_user(self, db):
        with pytest.raises(NotFound):
            await crud.update_user(db, uuid.uuid4(), nickname='x')

    @pytest.mark.asyncio
    async def test_update_rejects_unknown_fields(self, db):
        user = await make_user(db)
        with pytest.raises(ValueError):
            await crud.update_user(db, user.id, created_at=None)

    @pytest.mark.asyncio
    async def test_delete_user(self, db):
        user = await make_user(db)
        await crud.delete_user(db, user.id)
        with pytest.raises(NotFound):
            await crud.get_user_by_id(db, user.id)
        with pytest.raises(NotFound):
            await crud.delete_user(db, user.id)

    @pytest.mark.asyncio
    async def test_change_password(self, db):
        user = await make_user(db, password=hash_password('1234'))

        with pytest.raises(PasswordMismatch):
            await crud.change_password(db, user.id, 'wrong', '4321')

        updated = await crud.change_password(db, user.id, '1234', '4321')
        assert updated.updated_at > user.updated_at
        stored = await crud.get_user_by_id(db, user.id)
        assert verify_password('4321', stored.password)
        assert not verify_password('1234', stored.password)

    @pytest.mark.asyncio
    async def test_rejected_password_change_leaves_row_alone(self, db):
        user = await make_user(db, password=hash_password('1234'))

        with pytest.raises(PasswordMismatch):
            await crud.change_password(db, user.id, 'wrong', '4321')

        stored = await crud.get_user_by_id(db, user.id)
        assert stored.password == user.password
        assert stored.updated_at == user.updated_at

    @pytest.mark.asyncio
    async def test_stale_old_password_fails_after_change(self, db):
        user = await make_user(db, password=hash_password('1234'))

        await crud.change_password(db, user.id, '1234', 'first')
        with pytest.raises(PasswordMismatch):
            await crud.change_password(db, user.id, '1234', 'second')

        stored = await crud.get_user_by_id(db, user.id)
        assert verify_password('first', stored.password)

    @pytest.mark.asyncio
    async def test_change_password_missing_user(self, db):
        with pytest.raises(NotFound):
            await crud.change_password(db, uuid.uuid4(), '1234', '4321')
