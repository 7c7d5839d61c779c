"""Tests for GraphService like operations."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select

from app.exceptions import EntityNotFoundError
from app.models import Account, Follow, Like, Profile

pytestmark = pytest.mark.unit


class TestLike:
    """Tests for like_entity / unlike_entity."""

    async def test_like_increments_target_only(
        self, graph, make_account, make_profile, reload
    ) -> None:
        """Should move the target's likes_count and leave the liker untouched."""
        u1 = await make_account()
        p1 = await make_profile("business")

        edge = await graph.like_entity(u1, p1, "business")

        assert edge.user_id == u1
        assert (await reload(Profile, p1)).likes_count == 1
        liker = await reload(Account, u1)
        assert liker.likes_count == 0
        assert liker.following_count == 0

    async def test_like_twice_is_idempotent(
        self, graph, session, make_account, make_profile, reload
    ) -> None:
        u1 = await make_account()
        p1 = await make_profile()

        first = await graph.like_entity(u1, p1, "venue")
        second = await graph.like_entity(u1, p1, "venue")

        assert first.id == second.id
        assert await session.scalar(select(func.count(Like.id))) == 1
        assert (await reload(Profile, p1)).likes_count == 1

    async def test_like_and_follow_are_independent(
        self, graph, session, make_account, make_profile, reload
    ) -> None:
        u1 = await make_account()
        p1 = await make_profile()

        await graph.like_entity(u1, p1, "venue")

        assert await session.scalar(select(func.count(Follow.id))) == 0
        assert (await reload(Profile, p1)).followers_count == 0
        assert await graph.is_following(u1, p1) is False
        assert await graph.is_liked(u1, p1) is True

    async def test_like_user_target_counts_on_account(
        self, graph, make_account, reload
    ) -> None:
        u1 = await make_account()
        u2 = await make_account()

        await graph.like_entity(u1, u2, "user")

        assert (await reload(Account, u2)).likes_count == 1

    async def test_users_may_like_themselves(self, graph, make_account, reload) -> None:
        u1 = await make_account()

        await graph.like_entity(u1, u1, "user")

        assert (await reload(Account, u1)).likes_count == 1

    async def test_unknown_target_raises(self, graph, make_account) -> None:
        u1 = await make_account()

        with pytest.raises(EntityNotFoundError):
            await graph.like_entity(u1, "nope", "artist")

    async def test_unlike_reverses_like(
        self, graph, publisher, make_account, make_profile, reload
    ) -> None:
        u1 = await make_account()
        p1 = await make_profile("artist")

        await graph.like_entity(u1, p1, "artist")
        assert await graph.unlike_entity(u1, p1) is True

        assert (await reload(Profile, p1)).likes_count == 0
        assert await graph.is_liked(u1, p1) is False
        assert publisher.names == ["like.created", "like.deleted"]
        assert publisher.events[1]["target_type"] == "artist"

    async def test_unlike_without_edge_is_noop(
        self, graph, publisher, make_account, make_profile, reload
    ) -> None:
        u1 = await make_account()
        p1 = await make_profile()

        assert await graph.unlike_entity(u1, p1) is False
        assert (await reload(Profile, p1)).likes_count == 0
        assert publisher.events == []

    async def test_get_likes_lists_edges_on_target(
        self, graph, make_account, make_profile
    ) -> None:
        p1 = await make_profile()
        likers = [await make_account() for _ in range(3)]
        for user_id in likers:
            await graph.like_entity(user_id, p1, "venue")

        edges = await graph.get_likes(p1)
        assert {e.user_id for e in edges} == set(likers)
        assert len(await graph.get_likes(p1, limit=2)) == 2
