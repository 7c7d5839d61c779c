"""
Repositories over the entity, edge and review tables.

Each repository wraps one table behind keyed get / insert / delete / ordered
scan calls so the graph service never builds SQL itself. A UnitOfWork binds
all repositories to one session and turns a block of calls into a single
transaction:

    async with uow:
        edge = await uow.follows.add(...)
        await uow.counters.increment(...)

Counter updates are issued as single UPDATE statements (no read-modify-write)
and are not synchronised into objects already loaded in the session; the
entity getters therefore always repopulate from the database.
"""
import logging
from typing import Optional, Sequence

from sqlalchemy import case, delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DuplicateEdgeError, DuplicateEntityError
from app.models import Account, Follow, Like, Profile, Review
from app.targets import EntityFamily, family_of

logger = logging.getLogger(__name__)

_FAMILY_MODELS = {
    EntityFamily.account: Account,
    EntityFamily.profile: Profile,
}


def entity_model(target_type: str) -> type[Account] | type[Profile]:
    """Table holding the counters of a target of the given type."""
    return _FAMILY_MODELS[family_of(target_type)]


def _paginate(stmt, limit: Optional[int], offset: int):
    if offset:
        stmt = stmt.offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    return stmt


# ─────────────────────────── Entities ────────────────────────────────────

class AccountRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, account_id: str) -> Optional[Account]:
        return await self.session.get(Account, account_id, populate_existing=True)

    async def get_many(self, account_ids: Sequence[str]) -> dict[str, Account]:
        if not account_ids:
            return {}
        rows = await self.session.execute(
            select(Account)
            .where(Account.id.in_(set(account_ids)))
            .execution_options(populate_existing=True)
        )
        return {a.id: a for a in rows.scalars().all()}

    async def get_by_username(self, username: str) -> Optional[Account]:
        rows = await self.session.execute(
            select(Account).where(Account.username == username)
        )
        return rows.scalar_one_or_none()

    async def add(self, **fields) -> Account:
        account = Account(**fields)
        self.session.add(account)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateEntityError(
                f"Username '{fields.get('username')}' already taken"
            ) from exc
        return account


class ProfileRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, profile_id: str) -> Optional[Profile]:
        return await self.session.get(Profile, profile_id, populate_existing=True)

    async def get_for_update(self, profile_id: str) -> Optional[Profile]:
        """Load the profile holding a row lock until the transaction ends."""
        rows = await self.session.execute(
            select(Profile)
            .where(Profile.id == profile_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return rows.scalar_one_or_none()

    async def get_by_slug(self, slug: str) -> Optional[Profile]:
        rows = await self.session.execute(
            select(Profile)
            .where(Profile.slug == slug)
            .execution_options(populate_existing=True)
        )
        return rows.scalar_one_or_none()

    async def list(
        self,
        entity_type: Optional[str] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> list[Profile]:
        stmt = select(Profile).order_by(Profile.created_at.desc(), Profile.id)
        if entity_type:
            stmt = stmt.where(Profile.entity_type == entity_type)
        rows = await self.session.execute(
            _paginate(stmt, limit, offset).execution_options(populate_existing=True)
        )
        return list(rows.scalars().all())

    async def add(self, **fields) -> Profile:
        profile = Profile(**fields)
        self.session.add(profile)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateEntityError(
                f"Slug '{fields.get('slug')}' already taken"
            ) from exc
        return profile

    async def update(self, profile: Profile, fields: dict) -> Profile:
        for name, value in fields.items():
            setattr(profile, name, value)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateEntityError(
                f"Slug '{fields.get('slug')}' already taken"
            ) from exc
        return profile

    async def delete(self, profile_id: str) -> bool:
        result = await self.session.execute(
            delete(Profile).where(Profile.id == profile_id)
        )
        return result.rowcount > 0

    async def set_review_aggregate(self, profile_id: str, count: int, rating: float) -> None:
        await self.session.execute(
            update(Profile)
            .where(Profile.id == profile_id)
            .values(reviews_count=count, rating=rating)
            .execution_options(synchronize_session=False)
        )


class CounterRepository:
    """Atomic +1/-1 on denormalised counters of either entity table."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def increment(self, target_type: str, entity_id: str, counter: str) -> None:
        await self._adjust(target_type, [entity_id], counter, 1)

    async def decrement(self, target_type: str, entity_id: str, counter: str) -> None:
        await self._adjust(target_type, [entity_id], counter, -1)

    async def decrement_many(self, target_type: str, entity_ids: Sequence[str], counter: str) -> None:
        if entity_ids:
            await self._adjust(target_type, entity_ids, counter, -1)

    async def _adjust(
        self, target_type: str, entity_ids: Sequence[str], counter: str, delta: int
    ) -> None:
        model = entity_model(target_type)
        column = getattr(model, counter)
        adjusted = column + delta
        if delta < 0:
            # Floor at zero; never a ceiling
            adjusted = case((column + delta < 0, 0), else_=column + delta)
        result = await self.session.execute(
            update(model)
            .where(model.id.in_(list(entity_ids)))
            .values({counter: adjusted})
            .execution_options(synchronize_session=False)
        )
        if result.rowcount < len(set(entity_ids)):
            logger.warning(
                "Counter %s.%s adjusted on %d of %d rows",
                model.__tablename__, counter, result.rowcount, len(set(entity_ids)),
            )


# ─────────────────────────── Edges ───────────────────────────────────────

class _EdgeRepository:
    model: type[Follow] | type[Like]
    source_attr: str

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @property
    def _source(self):
        return getattr(self.model, self.source_attr)

    async def get(self, source_id: str, target_id: str):
        rows = await self.session.execute(
            select(self.model).where(
                self._source == source_id,
                self.model.target_id == target_id,
            )
        )
        return rows.scalar_one_or_none()

    async def exists(self, source_id: str, target_id: str) -> bool:
        rows = await self.session.execute(
            select(self.model.id).where(
                self._source == source_id,
                self.model.target_id == target_id,
            )
        )
        return rows.first() is not None

    async def add(self, source_id: str, target_id: str, target_type: str):
        edge = self.model(
            **{self.source_attr: source_id},
            target_id=target_id,
            target_type=str(target_type),
        )
        self.session.add(edge)
        try:
            await self.session.flush()
        except IntegrityError as exc:
            raise DuplicateEdgeError(source_id, target_id, exc) from exc
        return edge

    async def delete(self, edge) -> bool:
        """Delete by id; False when another transaction removed it first."""
        result = await self.session.execute(
            delete(self.model).where(self.model.id == edge.id)
        )
        return result.rowcount > 0

    async def delete_for_target(self, target_id: str) -> list[str]:
        """Delete every edge on a target; returns the source ids that had one."""
        rows = await self.session.execute(
            select(self._source).where(self.model.target_id == target_id)
        )
        source_ids = [r[0] for r in rows.all()]
        await self.session.execute(
            delete(self.model).where(self.model.target_id == target_id)
        )
        return source_ids

    async def list_for_target(
        self, target_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> list:
        stmt = (
            select(self.model)
            .where(self.model.target_id == target_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
        )
        rows = await self.session.execute(_paginate(stmt, limit, offset))
        return list(rows.scalars().all())

    async def list_for_source(
        self, source_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> list:
        stmt = (
            select(self.model)
            .where(self._source == source_id)
            .order_by(self.model.created_at.desc(), self.model.id.desc())
        )
        rows = await self.session.execute(_paginate(stmt, limit, offset))
        return list(rows.scalars().all())


class FollowRepository(_EdgeRepository):
    model = Follow
    source_attr = "follower_id"


class LikeRepository(_EdgeRepository):
    model = Like
    source_attr = "user_id"


# ─────────────────────────── Reviews ─────────────────────────────────────

class ReviewRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get(self, review_id: str) -> Optional[Review]:
        return await self.session.get(Review, review_id)

    async def add(self, **fields) -> Review:
        review = Review(**fields)
        self.session.add(review)
        await self.session.flush()
        return review

    async def delete(self, review_id: str) -> bool:
        result = await self.session.execute(
            delete(Review).where(Review.id == review_id)
        )
        return result.rowcount > 0

    async def delete_for_target(self, target_id: str) -> int:
        result = await self.session.execute(
            delete(Review).where(Review.target_id == target_id)
        )
        return result.rowcount

    async def list_for_target(
        self, target_id: str, limit: Optional[int] = None, offset: int = 0
    ) -> list[Review]:
        stmt = (
            select(Review)
            .where(Review.target_id == target_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        rows = await self.session.execute(_paginate(stmt, limit, offset))
        return list(rows.scalars().all())

    async def aggregate(self, target_id: str) -> tuple[int, int]:
        """(number of reviews, sum of ratings) over every review of a target."""
        rows = await self.session.execute(
            select(func.count(Review.id), func.coalesce(func.sum(Review.rating), 0))
            .where(Review.target_id == target_id)
        )
        count, total = rows.one()
        return int(count), int(total)


# ─────────────────────────── Unit of work ────────────────────────────────

class UnitOfWork:
    """One transaction spanning every repository bound to the session.

    Commits when the block exits cleanly and rolls back on any exception, so
    an edge write never survives without its counter updates (or vice versa).
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.accounts = AccountRepository(session)
        self.profiles = ProfileRepository(session)
        self.counters = CounterRepository(session)
        self.follows = FollowRepository(session)
        self.likes = LikeRepository(session)
        self.reviews = ReviewRepository(session)

    async def __aenter__(self) -> "UnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            await self.session.commit()
        else:
            await self.session.rollback()
