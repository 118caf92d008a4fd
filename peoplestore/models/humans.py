import uuid
from sqlalchemy import Column, Text, Uuid, ForeignKey
from . import Base

class Human(Base):
    __tablename__ = 'humans'
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)

    def __repr__(self):
        return f'<Human {self.id} {self.name!r}>'

class HumanFriend(Base):
    # directed edge: human_id considers friend_id a friend
    __tablename__ = 'human_friends'
    human_id = Column(Uuid, ForeignKey('humans.id'), primary_key=True)
    friend_id = Column(Uuid, ForeignKey('humans.id'), primary_key=True)
