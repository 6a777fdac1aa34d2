from sqlalchemy import Column, DateTime, Boolean, Text, ForeignKey, Index
import uuid

from jobboard.database import Base
from jobboard.database_types import GUID, utcnow


class Message(Base):
    """One chat line on an application thread. sender_id is NULL for automated messages."""
    __tablename__ = "messages"

    id = Column(GUID, primary_key=True, default=uuid.uuid4)
    application_id = Column(GUID, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        Index("idx_messages_application_created", "application_id", "created_at"),
    )

    @property
    def is_automated(self) -> bool:
        return self.sender_id is None
