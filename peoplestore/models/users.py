import uuid
from sqlalchemy import Column, Text, Uuid
from . import Base
from .types import UTCDateTime

class User(Base):
    __tablename__ = 'users'
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    username = Column(Text, unique=True, nullable=False)
    password = Column(Text, nullable=False)  # bcrypt hash, never serialized
    nickname = Column(Text, nullable=False)
    avatar_url = Column(Text, nullable=False)
    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    def __repr__(self):
        return f'<User {self.id} {self.username!r}>'
