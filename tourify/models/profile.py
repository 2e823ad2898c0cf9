"""Type-specific profile records.

Profiles are the source of truth for display data. Accounts point at them
by ``(profile_table, profile_id)`` without owning them.
"""
from datetime import datetime
from typing import Dict, Optional, Tuple, Type

from sqlalchemy import Boolean, Column, DateTime, String

from tourify.database import Base
from tourify.models.account import AccountType, new_id


class GeneralProfile(Base):
    """Personal profile; its id is the auth user id."""
    __tablename__ = "profiles"

    id = Column(String(255), primary_key=True)
    full_name = Column(String(255), nullable=True)
    username = Column(String(255), nullable=True)
    avatar_url = Column(String(1000), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def user_id(self) -> str:
        return self.id


class ArtistProfile(Base):
    __tablename__ = "artist_profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(255), nullable=False, index=True)
    artist_name = Column(String(255), nullable=True)
    stage_name = Column(String(255), nullable=True)
    avatar_url = Column(String(1000), nullable=True)
    verification_status = Column(String(20), nullable=False, default="unverified")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class VenueProfile(Base):
    __tablename__ = "venue_profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(255), nullable=False, index=True)
    venue_name = Column(String(255), nullable=True)
    avatar_url = Column(String(1000), nullable=True)
    verification_status = Column(String(20), nullable=False, default="unverified")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class OrganizerProfile(Base):
    """Organizer details backing admin accounts."""
    __tablename__ = "organizer_profiles"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(255), nullable=False, index=True)
    organization_name = Column(String(255), nullable=True)
    avatar_url = Column(String(1000), nullable=True)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


PROFILE_MODELS_BY_TYPE: Dict[str, Type[Base]] = {
    AccountType.PRIMARY.value: GeneralProfile,
    AccountType.ARTIST.value: ArtistProfile,
    AccountType.VENUE.value: VenueProfile,
    AccountType.ADMIN.value: OrganizerProfile,
}

# Columns a user may set when creating a profile
PROFILE_FIELDS: Dict[str, Tuple[str, ...]] = {
    AccountType.PRIMARY.value: ("full_name", "username", "avatar_url"),
    AccountType.ARTIST.value: ("artist_name", "stage_name", "avatar_url"),
    AccountType.VENUE.value: ("venue_name", "avatar_url"),
    AccountType.ADMIN.value: ("organization_name", "avatar_url"),
}

PROFILE_MODELS_BY_TABLE: Dict[str, Type[Base]] = {
    model.__tablename__: model for model in PROFILE_MODELS_BY_TYPE.values()
}


def profile_table_for(account_type: str) -> str:
    return PROFILE_MODELS_BY_TYPE[account_type].__tablename__


def profile_model_for_table(profile_table: str) -> Optional[Type[Base]]:
    return PROFILE_MODELS_BY_TABLE.get(profile_table)
