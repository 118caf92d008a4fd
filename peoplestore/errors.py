"""Storage errors.

Every constraint the schema enforces surfaces as its own exception type so
callers can tell them apart. ``status_code`` is the HTTP status the web layer
answers with.
"""


class StorageError(Exception):
    """Base class for errors raised by the storage access layer."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(StorageError):
    status_code = 404

    def __init__(self, entity: str, key):
        self.entity = entity
        self.key = key
        super().__init__(f'{entity} not found: {key}')


class DuplicateUsername(StorageError):
    status_code = 409

    def __init__(self, username: str):
        self.username = username
        super().__init__(f'username already exists: {username}')


class DuplicateFriendship(StorageError):
    status_code = 409

    def __init__(self, human_id, friend_id):
        self.human_id = human_id
        self.friend_id = friend_id
        super().__init__(f'friendship already exists: {human_id} -> {friend_id}')


class ReferentialIntegrityViolation(StorageError):
    status_code = 409


class HasDependentFriendships(ReferentialIntegrityViolation):
    def __init__(self, human_id, count: int):
        self.human_id = human_id
        self.count = count
        super().__init__(f'human {human_id} still has {count} friendship(s)')


class PasswordMismatch(StorageError):
    status_code = 400

    def __init__(self):
        super().__init__('No match password')
