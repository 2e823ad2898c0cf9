from datetime import datetime

from sqlalchemy import Column, DateTime, String

from tourify.database import Base


class ActiveAccountSelection(Base):
    """SQLAlchemy model for the account a user is currently acting as."""
    __tablename__ = "account_sessions"

    user_id = Column(String(255), primary_key=True)
    active_account_id = Column(String(36), nullable=False)
    last_switched_at = Column(DateTime, nullable=False, default=datetime.utcnow)
