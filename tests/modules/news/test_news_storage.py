"""
News tests against a real database.

Like counts and poll votes are checked against the rows actually stored
on an in-memory SQLite database.
"""

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from edubridge.modules.classes.models import ClassMembership, MembershipRole, SchoolClass
from edubridge.modules.news import service
from edubridge.modules.news.models import (
    NewsLike,
    NewsPostType,
    NewsScope,
    PollOption,
    PollVote,
)
from edubridge.modules.schools.models import School
from edubridge.modules.users.models import User

ALICE = "11111111-1111-1111-1111-111111111111"
BOB = "22222222-2222-2222-2222-222222222222"
SCHOOL_ID = "aaaaaaaa-0000-0000-0000-000000000001"
CLASS_ID = "cccccccc-0000-0000-0000-000000000001"


@pytest_asyncio.fixture
async def db(db_session):
    """Alice may post class news, Bob is a parent in the class."""
    db_session.add_all(
        [
            User(id=ALICE, first_name="Alice", last_name="Asante"),
            User(id=BOB, first_name="Bob", last_name="Owusu"),
            School(id=SCHOOL_ID, name="Accra Primary"),
        ]
    )
    await db_session.flush()
    db_session.add(SchoolClass(id=CLASS_ID, school_id=SCHOOL_ID, name="Class 4B"))
    await db_session.flush()
    db_session.add_all(
        [
            ClassMembership(
                class_id=CLASS_ID,
                user_id=ALICE,
                role=MembershipRole.TEACHER,
                can_post_news=True,
            ),
            ClassMembership(class_id=CLASS_ID, user_id=BOB, role=MembershipRole.PARENT),
        ]
    )
    await db_session.commit()
    return db_session


@pytest_asyncio.fixture
async def poll(db):
    return await service.create_news_post(
        db,
        ALICE,
        NewsScope.CLASS,
        "Sports day",
        "Which day suits you?",
        post_type=NewsPostType.POLL,
        class_id=CLASS_ID,
        poll_options=["Friday", " Saturday "],
    )


async def _count(db, model, *criteria) -> int:
    return await db.scalar(select(func.count()).select_from(model).where(*criteria))


class TestLikes:
    """Tests for like counts."""

    @pytest.mark.asyncio
    async def test_like_count_matches_rows(self, db, poll):
        first = await service.toggle_like(db, poll.id, ALICE)
        second = await service.toggle_like(db, poll.id, BOB)
        third = await service.toggle_like(db, poll.id, ALICE)

        assert (first.liked, first.like_count) == (True, 1)
        assert (second.liked, second.like_count) == (True, 2)
        assert (third.liked, third.like_count) == (False, 1)
        assert await _count(db, NewsLike, NewsLike.news_post_id == poll.id) == 1

    @pytest.mark.asyncio
    async def test_feed_reports_likes(self, db, poll):
        await service.toggle_like(db, poll.id, BOB)

        feed = await service.get_class_news(db, CLASS_ID, BOB)

        assert feed[0].like_count == 1
        assert feed[0].is_liked_by_user is True


class TestPollVotes:
    """Tests for poll voting."""

    @pytest.mark.asyncio
    async def test_options_stored_in_order(self, db, poll):
        assert [o.option_text for o in poll.poll_options] == ["Friday", "Saturday"]
        assert [o.position for o in poll.poll_options] == [0, 1]
        assert await _count(db, PollOption, PollOption.news_post_id == poll.id) == 2

    @pytest.mark.asyncio
    async def test_changing_vote_moves_single_row(self, db, poll):
        friday, saturday = poll.poll_options

        recorded = await service.vote_on_poll(db, friday.id, BOB)
        changed = await service.vote_on_poll(db, saturday.id, BOB)

        assert recorded.message == "Vote recorded"
        assert changed.message == "Vote changed"
        votes = (await db.scalars(select(PollVote).where(PollVote.user_id == BOB))).all()
        assert [v.poll_option_id for v in votes] == [saturday.id]

        feed = await service.get_class_news(db, CLASS_ID, BOB)
        counts = {o.id: (o.vote_count, o.has_voted) for o in feed[0].poll_options}
        assert counts == {friday.id: (0, False), saturday.id: (1, True)}

    @pytest.mark.asyncio
    async def test_same_option_again_removes_vote(self, db, poll):
        friday, _ = poll.poll_options
        await service.vote_on_poll(db, friday.id, BOB)

        removed = await service.vote_on_poll(db, friday.id, BOB)

        assert removed.voted is False
        assert await _count(db, PollVote, PollVote.news_post_id == poll.id) == 0

    @pytest.mark.asyncio
    async def test_second_vote_row_for_poll_rejected(self, db, poll):
        friday, saturday = poll.poll_options
        await service.vote_on_poll(db, friday.id, BOB)

        with pytest.raises(IntegrityError):
            async with db.begin_nested():
                db.add(PollVote(poll_option_id=saturday.id, news_post_id=poll.id, user_id=BOB))
                await db.flush()

        assert await _count(db, PollVote, PollVote.news_post_id == poll.id) == 1


class TestDeletePost:
    """Tests for deleting a post with its dependants."""

    @pytest.mark.asyncio
    async def test_options_votes_and_likes_removed(self, db, poll):
        friday, _ = poll.poll_options
        await service.vote_on_poll(db, friday.id, BOB)
        await service.toggle_like(db, poll.id, BOB)

        await service.delete_news_post(db, poll.id, ALICE)

        assert await _count(db, PollOption, PollOption.news_post_id == poll.id) == 0
        assert await _count(db, PollVote, PollVote.news_post_id == poll.id) == 0
        assert await _count(db, NewsLike, NewsLike.news_post_id == poll.id) == 0
