"""Models package initialization."""

from tourify.database import Base
from tourify.models.account import Account, AccountType, AdminAccessRequest, POSTING_ACCOUNT_TYPES
from tourify.models.profile import GeneralProfile, ArtistProfile, VenueProfile, OrganizerProfile
from tourify.models.session import ActiveAccountSelection
from tourify.models.content import Post, JobPosting
from tourify.models.activity import AccountActivity, AccountFollow

# Ensure all models are registered with Base
__all__ = [
    'Base',
    'Account',
    'AccountType',
    'POSTING_ACCOUNT_TYPES',
    'AdminAccessRequest',
    'GeneralProfile',
    'ArtistProfile',
    'VenueProfile',
    'OrganizerProfile',
    'ActiveAccountSelection',
    'Post',
    'JobPosting',
    'AccountActivity',
    'AccountFollow'
]

# Register models with Base
Base.registry.configure()
