"""
Graph service — follow, like and review mutations plus one-hop reads.

Every mutation that touches more than one row runs inside a single
UnitOfWork, so edge rows and the counters derived from them commit or roll
back together:

  follow        insert edge, target.followers_count +1, follower.following_count +1
  unfollow      delete edge, both counters -1 (floored at zero)
  like_entity   insert edge, target.likes_count +1
  unlike_entity delete edge, target.likes_count -1 (floored at zero)
  create_review insert review, recompute profile.reviews_count and rating
  delete_review delete review, recompute profile.reviews_count and rating

Which table holds a target's counters is decided by its target type
(see app.targets). Events are published only after the commit succeeds.
"""
import logging
import time
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Awaitable, Callable, Optional

from opentelemetry import trace

from app.clients.kafka_producer import publish_social_event
from app.exceptions import (
    DuplicateEdgeError,
    EntityNotFoundError,
    InvalidReviewError,
    SelfRelationshipError,
)
from app.models import Account, Follow, Like, Review
from app.repositories import UnitOfWork
from app.targets import EntityFamily, TargetType, family_of
from app.telemetry import GRAPH_MUTATIONS_TOTAL, REVIEW_AGGREGATE_SECONDS

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

RATING_MIN = 1
RATING_MAX = 5

Publisher = Callable[[dict], Awaitable[None]]


def rounded_mean(total: int, count: int) -> float:
    """Mean rating rounded half-up to one decimal; 0.0 when there are no reviews."""
    if count == 0:
        return 0.0
    mean = Decimal(total) / Decimal(count)
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


class GraphService:
    def __init__(self, uow: UnitOfWork, publisher: Publisher = publish_social_event) -> None:
        self.uow = uow
        self._publish = publisher

    # ───────────────────────── Follows ───────────────────────────────────

    async def follow(self, follower_id: str, target_id: str, target_type: str) -> Follow:
        """
        Create a follower → target edge. Idempotent: an existing edge is
        returned unchanged and no counter moves.
        """
        target_type = TargetType(target_type)
        with tracer.start_as_current_span("graph.follow") as span:
            span.set_attribute("follower.id", follower_id)
            span.set_attribute("target.id", target_id)
            span.set_attribute("target.type", str(target_type))

            if target_type is TargetType.user and follower_id == target_id:
                raise SelfRelationshipError("Cannot follow yourself")

            try:
                async with self.uow:
                    existing = await self.uow.follows.get(follower_id, target_id)
                    if existing is not None:
                        span.set_attribute("graph.outcome", "existing")
                        GRAPH_MUTATIONS_TOTAL.labels("follow", "existing").inc()
                        return existing

                    await self._require_account(follower_id)
                    await self._require_target(target_id, target_type)

                    edge = await self.uow.follows.add(follower_id, target_id, target_type)
                    await self.uow.counters.increment(target_type, target_id, "followers_count")
                    await self.uow.counters.increment(TargetType.user, follower_id, "following_count")
            except DuplicateEdgeError:
                # A concurrent follow committed the same pair first
                existing = await self.uow.follows.get(follower_id, target_id)
                if existing is None:
                    raise
                span.set_attribute("graph.outcome", "existing")
                GRAPH_MUTATIONS_TOTAL.labels("follow", "existing").inc()
                return existing

            span.set_attribute("graph.outcome", "created")
            GRAPH_MUTATIONS_TOTAL.labels("follow", "created").inc()
            logger.info("%s followed %s (%s)", follower_id, target_id, target_type)
            await self._emit("follow.created", follower_id, target_id, target_type)
            return edge

    async def unfollow(self, follower_id: str, target_id: str) -> bool:
        """Remove the edge. False (and nothing changes) when there is none."""
        with tracer.start_as_current_span("graph.unfollow") as span:
            span.set_attribute("follower.id", follower_id)
            span.set_attribute("target.id", target_id)

            async with self.uow:
                edge = await self.uow.follows.get(follower_id, target_id)
                if edge is None or not await self.uow.follows.delete(edge):
                    span.set_attribute("graph.outcome", "noop")
                    GRAPH_MUTATIONS_TOTAL.labels("unfollow", "noop").inc()
                    return False
                # Routed by the tag stored on the edge, not by the caller
                target_type = TargetType(edge.target_type)
                await self.uow.counters.decrement(target_type, target_id, "followers_count")
                await self.uow.counters.decrement(TargetType.user, follower_id, "following_count")

            span.set_attribute("graph.outcome", "deleted")
            GRAPH_MUTATIONS_TOTAL.labels("unfollow", "deleted").inc()
            logger.info("%s unfollowed %s", follower_id, target_id)
            await self._emit("follow.deleted", follower_id, target_id, target_type)
            return True

    async def get_followers(
        self, target_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> list[Follow]:
        return await self.uow.follows.list_for_target(target_id, limit, offset)

    async def get_following(
        self, user_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> list[Follow]:
        return await self.uow.follows.list_for_source(user_id, limit, offset)

    async def is_following(self, follower_id: str, target_id: str) -> bool:
        return await self.uow.follows.exists(follower_id, target_id)

    # ───────────────────────── Likes ─────────────────────────────────────

    async def like_entity(self, user_id: str, target_id: str, target_type: str) -> Like:
        """Same state machine as follow; only the target's likes_count moves."""
        target_type = TargetType(target_type)
        with tracer.start_as_current_span("graph.like") as span:
            span.set_attribute("user.id", user_id)
            span.set_attribute("target.id", target_id)
            span.set_attribute("target.type", str(target_type))

            try:
                async with self.uow:
                    existing = await self.uow.likes.get(user_id, target_id)
                    if existing is not None:
                        span.set_attribute("graph.outcome", "existing")
                        GRAPH_MUTATIONS_TOTAL.labels("like", "existing").inc()
                        return existing

                    await self._require_account(user_id)
                    await self._require_target(target_id, target_type)

                    edge = await self.uow.likes.add(user_id, target_id, target_type)
                    await self.uow.counters.increment(target_type, target_id, "likes_count")
            except DuplicateEdgeError:
                existing = await self.uow.likes.get(user_id, target_id)
                if existing is None:
                    raise
                span.set_attribute("graph.outcome", "existing")
                GRAPH_MUTATIONS_TOTAL.labels("like", "existing").inc()
                return existing

            span.set_attribute("graph.outcome", "created")
            GRAPH_MUTATIONS_TOTAL.labels("like", "created").inc()
            logger.info("%s liked %s (%s)", user_id, target_id, target_type)
            await self._emit("like.created", user_id, target_id, target_type)
            return edge

    async def unlike_entity(self, user_id: str, target_id: str) -> bool:
        with tracer.start_as_current_span("graph.unlike") as span:
            span.set_attribute("user.id", user_id)
            span.set_attribute("target.id", target_id)

            async with self.uow:
                edge = await self.uow.likes.get(user_id, target_id)
                if edge is None or not await self.uow.likes.delete(edge):
                    span.set_attribute("graph.outcome", "noop")
                    GRAPH_MUTATIONS_TOTAL.labels("unlike", "noop").inc()
                    return False
                target_type = TargetType(edge.target_type)
                await self.uow.counters.decrement(target_type, target_id, "likes_count")

            span.set_attribute("graph.outcome", "deleted")
            GRAPH_MUTATIONS_TOTAL.labels("unlike", "deleted").inc()
            logger.info("%s unliked %s", user_id, target_id)
            await self._emit("like.deleted", user_id, target_id, target_type)
            return True

    async def is_liked(self, user_id: str, target_id: str) -> bool:
        return await self.uow.likes.exists(user_id, target_id)

    async def get_likes(
        self, target_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> list[Like]:
        return await self.uow.likes.list_for_target(target_id, limit, offset)

    # ───────────────────────── Reviews ───────────────────────────────────

    async def create_review(
        self,
        user_id: str,
        target_id: str,
        rating: int,
        comment: Optional[str] = None,
        user_name: Optional[str] = None,
        user_avatar_url: Optional[str] = None,
    ) -> Review:
        """
        Insert a review and recompute the profile's reviews_count and mean
        rating from every review it has, in the same transaction.
        """
        with tracer.start_as_current_span("graph.create_review") as span:
            span.set_attribute("user.id", user_id)
            span.set_attribute("target.id", target_id)
            span.set_attribute("review.rating", rating)

            if (
                not isinstance(rating, int)
                or isinstance(rating, bool)
                or not RATING_MIN <= rating <= RATING_MAX
            ):
                raise InvalidReviewError(
                    f"Rating must be an integer between {RATING_MIN} and {RATING_MAX}"
                )

            async with self.uow:
                # Row lock serialises review writers on one profile
                profile = await self.uow.profiles.get_for_update(target_id)
                if profile is None:
                    raise InvalidReviewError(f"Review target {target_id} is not a known profile")
                author = await self._require_account(user_id)

                review = await self.uow.reviews.add(
                    user_id=user_id,
                    target_id=target_id,
                    rating=rating,
                    comment=comment,
                    user_name=user_name or author.display_name or author.username,
                    user_avatar_url=user_avatar_url or author.avatar_url,
                )
                count, mean = await self._recompute_rating(target_id)
                target_type = profile.entity_type

            span.set_attribute("profile.reviews_count", count)
            GRAPH_MUTATIONS_TOTAL.labels("review_create", "created").inc()
            logger.info(
                "Review %s on %s by %s (rating=%d, now %d reviews @ %.1f)",
                review.id, target_id, user_id, rating, count, mean,
            )
            await self._emit("review.created", user_id, target_id, target_type, rating=rating)
            return review

    async def delete_review(self, review_id: str) -> bool:
        """Delete a review; the target's aggregate is recomputed like on create."""
        with tracer.start_as_current_span("graph.delete_review") as span:
            span.set_attribute("review.id", review_id)

            async with self.uow:
                review = await self.uow.reviews.get(review_id)
                if review is None:
                    GRAPH_MUTATIONS_TOTAL.labels("review_delete", "noop").inc()
                    return False
                user_id, target_id, rating = review.user_id, review.target_id, review.rating
                profile = await self.uow.profiles.get_for_update(target_id)
                if not await self.uow.reviews.delete(review_id):
                    GRAPH_MUTATIONS_TOTAL.labels("review_delete", "noop").inc()
                    return False
                target_type = profile.entity_type if profile is not None else None
                await self._recompute_rating(target_id)

            GRAPH_MUTATIONS_TOTAL.labels("review_delete", "deleted").inc()
            logger.info("Review %s on %s deleted", review_id, target_id)
            await self._emit("review.deleted", user_id, target_id, target_type, rating=rating)
            return True

    async def get_reviews(
        self, target_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> list[Review]:
        return await self.uow.reviews.list_for_target(target_id, limit, offset)

    async def get_review(self, review_id: str) -> Optional[Review]:
        return await self.uow.reviews.get(review_id)

    # ───────────────────────── Members ───────────────────────────────────

    async def get_members(self, profile_id: str) -> list[Account]:
        """
        Accounts following the profile, most recent follow first, each once.
        Follower accounts are resolved in one batch query.
        """
        edges = await self.uow.follows.list_for_target(profile_id)
        follower_ids = list(dict.fromkeys(e.follower_id for e in edges))
        accounts = await self.uow.accounts.get_many(follower_ids)
        return [accounts[fid] for fid in follower_ids if fid in accounts]

    async def delete_profile(self, profile_id: str) -> bool:
        """
        Delete a profile and everything pointing at it. Its followers lose
        one from following_count so that counter still matches their edges.
        """
        with tracer.start_as_current_span("graph.delete_profile") as span:
            span.set_attribute("profile.id", profile_id)

            async with self.uow:
                if not await self.uow.profiles.delete(profile_id):
                    return False
                follower_ids = await self.uow.follows.delete_for_target(profile_id)
                await self.uow.counters.decrement_many(
                    TargetType.user, follower_ids, "following_count"
                )
                liker_ids = await self.uow.likes.delete_for_target(profile_id)
                reviews = await self.uow.reviews.delete_for_target(profile_id)

            logger.info(
                "Deleted profile %s (%d follows, %d likes, %d reviews)",
                profile_id, len(follower_ids), len(liker_ids), reviews,
            )
            return True

    # ───────────────────────── Helpers ───────────────────────────────────

    async def _recompute_rating(self, target_id: str) -> tuple[int, float]:
        # Full rescan of the target's reviews; exact at O(n) per write
        start = time.perf_counter()
        count, total = await self.uow.reviews.aggregate(target_id)
        mean = rounded_mean(total, count)
        await self.uow.profiles.set_review_aggregate(target_id, count, mean)
        REVIEW_AGGREGATE_SECONDS.observe(time.perf_counter() - start)
        return count, mean

    async def _require_account(self, account_id: str) -> Account:
        account = await self.uow.accounts.get(account_id)
        if account is None:
            raise EntityNotFoundError("user", account_id)
        return account

    async def _require_target(self, target_id: str, target_type: TargetType) -> None:
        if family_of(target_type) is EntityFamily.account:
            found = await self.uow.accounts.get(target_id)
        else:
            found = await self.uow.profiles.get(target_id)
        if found is None:
            raise EntityNotFoundError(str(target_type), target_id)

    async def _emit(
        self, event: str, actor_id: str, target_id: str, target_type: Optional[str], **extra
    ) -> None:
        payload = {
            "event": event,
            "actor_id": actor_id,
            "target_id": target_id,
            "target_type": str(target_type) if target_type is not None else None,
            "occurred_at": datetime.now(timezone.utc).isoformat(),
            **extra,
        }
        try:
            await self._publish(payload)
        except Exception as exc:
            # Already committed; a lost event must not fail the request
            logger.warning("Could not publish %s for %s: %s", event, target_id, exc)
