from sqlalchemy import Column, Integer, Text, String, TIMESTAMP, ForeignKey
from sqlalchemy.orm import relationship
from .db import Base
from .lead import utcnow


class Message(Base):
    __tablename__ = "messages"
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, autoincrement=True)
    conversation_id = Column(Integer, ForeignKey("conversations.id"), index=True, nullable=False)
    role = Column(String, nullable=False)  # 'user' | 'assistant'
    content = Column(Text, nullable=False)
    created_at = Column(TIMESTAMP(timezone=True), default=utcnow)

    conversation = relationship("Conversation", back_populates="messages")
