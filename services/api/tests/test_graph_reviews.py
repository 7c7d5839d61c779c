"""Tests for review creation, deletion and rating aggregation.

Tests cover:
- Mean rating recomputed from every review, rounded half-up
- reviews_count tracking on create and delete
- Rating range and unknown-profile rejection
- Author display fields defaulting from the account
"""

from __future__ import annotations

import pytest

from app.exceptions import EntityNotFoundError, InvalidReviewError
from app.graph_service import rounded_mean
from app.models import Profile

pytestmark = pytest.mark.unit


class TestRoundedMean:
    """Tests for the rating rounding helper."""

    @pytest.mark.parametrize(
        ("total", "count", "expected"),
        [
            (0, 0, 0.0),
            (12, 3, 4.0),
            (14, 4, 3.5),
            (5, 2, 2.5),
            # 3.25 and 4.05 round up, not to even
            (13, 4, 3.3),
            (81, 20, 4.1),
            (10, 3, 3.3),
            (11, 3, 3.7),
        ],
    )
    def test_rounds_half_up_to_one_decimal(self, total, count, expected) -> None:
        assert rounded_mean(total, count) == expected


class TestCreateReview:
    """Tests for GraphService.create_review."""

    async def test_aggregate_over_all_reviews(
        self, graph, make_account, make_profile, reload
    ) -> None:
        """Should keep rating at the rounded mean of every rating so far."""
        p1 = await make_profile("venue")
        authors = [await make_account() for _ in range(4)]

        for author, rating in zip(authors, [5, 4, 3]):
            await graph.create_review(author, p1, rating)

        profile = await reload(Profile, p1)
        assert profile.reviews_count == 3
        assert profile.rating == 4.0

        await graph.create_review(authors[3], p1, 2)

        profile = await reload(Profile, p1)
        assert profile.reviews_count == 4
        assert profile.rating == 3.5

    async def test_same_user_may_review_twice(
        self, graph, make_account, make_profile, reload
    ) -> None:
        u1 = await make_account()
        p1 = await make_profile()

        await graph.create_review(u1, p1, 5)
        await graph.create_review(u1, p1, 2)

        profile = await reload(Profile, p1)
        assert profile.reviews_count == 2
        assert profile.rating == 3.5

    @pytest.mark.parametrize("rating", [0, 6, -1, 10, 4.5, 4.0, "4", True])
    async def test_rating_out_of_range_rejected(
        self, rating, graph, make_account, make_profile, reload
    ) -> None:
        u1 = await make_account()
        p1 = await make_profile()

        with pytest.raises(InvalidReviewError):
            await graph.create_review(u1, p1, rating)

        profile = await reload(Profile, p1)
        assert profile.reviews_count == 0
        assert profile.rating == 0.0

    async def test_unknown_profile_rejected(self, graph, make_account) -> None:
        u1 = await make_account()

        with pytest.raises(InvalidReviewError):
            await graph.create_review(u1, "no-such-profile", 4)

    async def test_account_id_is_not_a_review_target(self, graph, make_account) -> None:
        u1 = await make_account()
        u2 = await make_account()

        with pytest.raises(InvalidReviewError):
            await graph.create_review(u1, u2, 4)

    async def test_unknown_author_rejected(self, graph, make_profile, reload) -> None:
        p1 = await make_profile()

        with pytest.raises(EntityNotFoundError):
            await graph.create_review("ghost", p1, 4)

        assert (await reload(Profile, p1)).reviews_count == 0

    async def test_author_fields_default_from_account(
        self, graph, make_account, make_profile
    ) -> None:
        u1 = await make_account(display_name="Mei Lin", avatar_url="https://cdn.example/mei.png")
        p1 = await make_profile()

        review = await graph.create_review(u1, p1, 5, comment="Lovely")

        assert review.user_name == "Mei Lin"
        assert review.user_avatar_url == "https://cdn.example/mei.png"
        assert review.comment == "Lovely"

    async def test_explicit_author_fields_win(self, graph, make_account, make_profile) -> None:
        u1 = await make_account(display_name="Mei Lin")
        p1 = await make_profile()

        review = await graph.create_review(u1, p1, 4, user_name="Mei L.")

        assert review.user_name == "Mei L."

    async def test_publishes_review_created(
        self, graph, publisher, make_account, make_profile
    ) -> None:
        u1 = await make_account()
        p1 = await make_profile("council")

        await graph.create_review(u1, p1, 3)

        assert publisher.names == ["review.created"]
        assert publisher.events[0]["rating"] == 3
        assert publisher.events[0]["target_type"] == "council"


class TestReviewLocking:
    """Review writes lock the profile row before recomputing its aggregate."""

    async def test_create_and_delete_lock_the_profile(
        self, graph, monkeypatch, make_account, make_profile
    ) -> None:
        u1 = await make_account()
        p1 = await make_profile()
        locked: list[str] = []
        real_lock = graph.uow.profiles.get_for_update

        async def recording_lock(profile_id: str):
            locked.append(profile_id)
            return await real_lock(profile_id)

        monkeypatch.setattr(graph.uow.profiles, "get_for_update", recording_lock)

        review = await graph.create_review(u1, p1, 4)
        await graph.delete_review(review.id)

        assert locked == [p1, p1]


class TestDeleteReview:
    """Tests for GraphService.delete_review."""

    async def test_delete_recomputes_aggregate(
        self, graph, publisher, make_account, make_profile, reload
    ) -> None:
        u1 = await make_account()
        u2 = await make_account()
        p1 = await make_profile()

        await graph.create_review(u1, p1, 5)
        low = await graph.create_review(u2, p1, 2)
        low_id = low.id

        assert await graph.delete_review(low_id) is True

        profile = await reload(Profile, p1)
        assert profile.reviews_count == 1
        assert profile.rating == 5.0
        assert await graph.get_review(low_id) is None
        assert publisher.names[-1] == "review.deleted"

    async def test_deleting_last_review_resets_rating(
        self, graph, make_account, make_profile, reload
    ) -> None:
        u1 = await make_account()
        p1 = await make_profile()
        review = await graph.create_review(u1, p1, 4)

        await graph.delete_review(review.id)

        profile = await reload(Profile, p1)
        assert profile.reviews_count == 0
        assert profile.rating == 0.0

    async def test_delete_unknown_review_returns_false(self, graph, publisher) -> None:
        assert await graph.delete_review("missing") is False
        assert publisher.events == []


class TestReviewReads:
    async def test_get_reviews_paginates(self, graph, make_account, make_profile) -> None:
        p1 = await make_profile()
        u1 = await make_account()
        for rating in (1, 2, 3, 4):
            await graph.create_review(u1, p1, rating)

        assert len(await graph.get_reviews(p1)) == 4
        assert len(await graph.get_reviews(p1, limit=3)) == 3
        assert len(await graph.get_reviews(p1, limit=3, offset=3)) == 1
