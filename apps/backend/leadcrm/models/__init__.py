from .db import Base, engine
from .lead import Lead
from .application import Application
from .conversation import Conversation
from .message import Message


def create_all(bind=None):
    Base.metadata.create_all(bind=bind or engine)
