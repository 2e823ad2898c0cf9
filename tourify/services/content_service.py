"""Creation and listing of attributed content."""
import logging
from typing import Any, List, Optional

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from tourify.core.config import get_settings
from tourify.core.exceptions import AccountNotFound
from tourify.models.content import ATTRIBUTED_MODELS, JobPosting, Post
from tourify.schemas.account import PostingIdentity
from tourify.schemas.content import JobPostingCreate, PostCreate
from tourify.services.account_store import AccountStore, ownership_violation
from tourify.services.attribution import AttributionResolver
from tourify.services.error_handling import store_errors, with_retry
from tourify.services.event_bus import CONTENT_CHANNEL, EventBus
from tourify.utils.pagination import PaginationParams

logger = logging.getLogger(__name__)

PUBLIC_VISIBILITY = "public"


def _content_record(item: Any) -> dict:
    return {
        "table": item.__tablename__,
        "id": item.id,
        "owner_user_id": item.owner_user_id,
        **item.attribution_dict(),
    }


class ContentService:
    """Stamps content with a resolved attribution snapshot.

    No content is written unless its attribution resolved.
    """

    def __init__(
        self,
        db: Session,
        resolver: AttributionResolver,
        store: AccountStore,
        event_bus: Optional[EventBus] = None
    ):
        self.db = db
        self.resolver = resolver
        self.store = store
        self.event_bus = event_bus

    def resolve_identity(self, user_id: str, account_type: str) -> PostingIdentity:
        """Resolve the posting identity, retrying the whole resolution on store outages."""
        settings = get_settings()
        resolve = with_retry(
            max_retries=settings.RESOLVE_MAX_RETRIES,
            initial_delay=settings.RESOLVE_RETRY_DELAY
        )(self.resolver.resolve_posting_identity)
        identity = resolve(user_id, account_type)

        account = self.store.get_account(identity.account_id)
        if account is None:
            raise AccountNotFound(f"Account {identity.account_id} not found")
        if not account.has_permission("can_post"):
            raise ownership_violation(user_id, identity.account_id, "post as")
        return identity

    def create_post(self, user_id: str, account_type: str, post: PostCreate) -> Post:
        identity = self.resolve_identity(user_id, account_type)
        item = Post(
            **self._attribution_columns(user_id, identity),
            content=post.content,
            post_type=post.post_type,
            visibility=post.visibility,
            media_urls=list(post.media_urls),
            hashtags=list(post.hashtags)
        )
        return self._insert(item)

    def create_job_posting(self, user_id: str, account_type: str, job: JobPostingCreate) -> JobPosting:
        identity = self.resolve_identity(user_id, account_type)
        item = JobPosting(
            **self._attribution_columns(user_id, identity),
            title=job.title,
            description=job.description,
            location=job.location
        )
        return self._insert(item)

    def list_posts_by_account(
        self,
        account_id: str,
        pagination: Optional[PaginationParams] = None,
        viewer_user_id: Optional[str] = None
    ) -> List[Post]:
        """Posts made as an account, newest first.

        Only public posts are listed unless the viewer owns the account.
        """
        pagination = pagination or PaginationParams()
        account = self.store.get_account(account_id)
        statement = select(Post).where(Post.account_id == account_id)
        if account is None or account.owner_user_id != viewer_user_id:
            statement = statement.where(Post.visibility == PUBLIC_VISIBILITY)

        with store_errors(self.db, f"list posts of {account_id}"):
            result = self.db.execute(pagination.apply(statement.order_by(Post.created_at.desc())))
            return list(result.scalars().all())

    def backfill_attribution(self, owner_user_id: str, account_id: str) -> int:
        """
        Rewrite the attribution snapshot of an account's content from its
        current display fields.

        Returns:
            Number of content rows updated
        """
        account = self.store.get_account(account_id)
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found")
        if account.owner_user_id != owner_user_id:
            raise ownership_violation(owner_user_id, account_id, "backfill attribution of")

        updated = 0
        with store_errors(self.db, f"backfill attribution of {account_id}"):
            for model in ATTRIBUTED_MODELS:
                result = self.db.execute(
                    update(model)
                    .where(model.account_id == account_id)
                    .values(
                        author_display_name=account.display_name,
                        author_username=account.username,
                        author_avatar_url=account.avatar_url
                    )
                )
                updated += result.rowcount or 0
            self.store.log_activity(owner_user_id, account, "backfill_attribution", {"updated": updated})
            self.db.commit()

        logger.info(f"Backfilled attribution on {updated} rows for account {account_id}")
        return updated

    @staticmethod
    def _attribution_columns(user_id: str, identity: PostingIdentity) -> dict:
        return {
            "owner_user_id": user_id,
            "account_id": identity.account_id,
            "account_type": identity.account_type,
            "author_display_name": identity.display_info.display_name,
            "author_username": identity.display_info.username,
            "author_avatar_url": identity.display_info.avatar_url,
        }

    def _insert(self, item: Any) -> Any:
        with store_errors(self.db, f"create {item.__tablename__} row"):
            self.db.add(item)
            self.db.commit()
            self.db.refresh(item)
        logger.info(f"Created {item.__tablename__} {item.id} as account {item.account_id}")
        if self.event_bus:
            self.event_bus.publish(CONTENT_CHANNEL, "insert", _content_record(item))
        return item
