from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, JSON, String, UniqueConstraint

from tourify.database import Base


class AccountActivity(Base):
    """Audit trail of account lifecycle actions."""
    __tablename__ = "account_activity_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False, index=True)
    account_id = Column(String(36), nullable=True)
    account_type = Column(String(20), nullable=True)
    action_type = Column(String(50), nullable=False)  # create_account, switch_account, ...
    action_details = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class AccountFollow(Base):
    """Follow edge between two accounts; source for follower counts."""
    __tablename__ = "account_follows"
    __table_args__ = (
        UniqueConstraint("follower_account_id", "followed_account_id", name="uq_account_follows_pair"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    follower_account_id = Column(String(36), nullable=False, index=True)
    followed_account_id = Column(String(36), nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
