"""Conversation entity: one chat session."""
from api.shared.entities.base import BaseEntity


class Conversation(BaseEntity):
    """A chat session. Its id doubles as the client's ``sessionId``."""
