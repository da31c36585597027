from sqlalchemy import Column, String, DateTime, ForeignKey, Text, UniqueConstraint
from sqlalchemy.orm import relationship
import uuid

from app.db.session import Base
from app.models.user import utcnow


def new_id() -> str:
    return str(uuid.uuid4())


class Like(Base):
    """Directed like from one user to another. Immutable once created."""

    __tablename__ = "likes"

    id = Column(String(36), primary_key=True, default=new_id)
    from_user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    to_user_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (UniqueConstraint("from_user_id", "to_user_id", name="unique_like"),)


class Match(Base):
    """
    Undirected pairing stored as an ordered pair.
    New rows are written with the lexicographically smaller id in user_a_id,
    older rows may not follow that ordering.
    """

    __tablename__ = "matches"

    id = Column(String(36), primary_key=True, default=new_id)
    user_a_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    user_b_id = Column(String(64), ForeignKey("profiles.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (UniqueConstraint("user_a_id", "user_b_id", name="unique_match_pair"),)

    # Relationships
    conversation = relationship("Conversation", back_populates="match", uselist=False)

    def involves(self, user_id: str) -> bool:
        return user_id in (self.user_a_id, self.user_b_id)

    def other_user_id(self, user_id: str) -> str:
        return self.user_b_id if self.user_a_id == user_id else self.user_a_id


class Conversation(Base):
    """One conversation per match. Holds no content itself."""

    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True, default=new_id)
    match_id = Column(
        String(36), ForeignKey("matches.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Relationships
    match = relationship("Match", back_populates="conversation")


class Message(Base):
    """Append-only chat message."""

    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=new_id)
    conversation_id = Column(
        String(36), ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id = Column(String(64), ForeignKey("profiles.id"), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
