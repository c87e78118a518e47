"""
News Repository

Database operations for news posts, poll options, votes and likes.
Functions only flush; the service layer owns commits.
"""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from edubridge.modules.news.models import (
    NewsLike,
    NewsPost,
    NewsPostType,
    NewsScope,
    PollOption,
    PollVote,
)


async def get_post(db: AsyncSession, news_post_id: str) -> NewsPost | None:
    return await db.get(NewsPost, news_post_id)


async def get_posts(
    db: AsyncSession,
    *,
    scope: NewsScope,
    school_id: str | None = None,
    class_id: str | None = None,
) -> list[NewsPost]:
    """Posts of a school or class feed, newest first, with poll options."""
    query = select(NewsPost).options(selectinload(NewsPost.poll_options)).where(
        NewsPost.scope == scope
    )
    if scope == NewsScope.SCHOOL:
        query = query.where(NewsPost.school_id == school_id)
    else:
        query = query.where(NewsPost.class_id == class_id)

    result = await db.execute(query.order_by(NewsPost.published_at.desc()))
    return list(result.scalars().all())


async def create_post(
    db: AsyncSession,
    *,
    author_id: str,
    scope: NewsScope,
    school_id: str | None,
    class_id: str | None,
    post_type: NewsPostType,
    title: str,
    content: str,
    attachments: list,
    poll_options: list[str],
) -> NewsPost:
    """Create a post and, for polls, its options in the given order."""
    post = NewsPost(
        author_id=author_id,
        scope=scope,
        school_id=school_id,
        class_id=class_id,
        type=post_type,
        title=title,
        content=content,
        attachments=attachments,
    )
    post.poll_options = [
        PollOption(option_text=text, position=position)
        for position, text in enumerate(poll_options)
    ]
    db.add(post)
    await db.flush()
    return post


async def delete_post(db: AsyncSession, news_post_id: str) -> None:
    """Delete a post; options, votes and likes go with it via ON DELETE CASCADE."""
    await db.execute(delete(NewsPost).where(NewsPost.id == news_post_id))


# Likes


async def get_like(db: AsyncSession, news_post_id: str, user_id: str) -> NewsLike | None:
    result = await db.execute(
        select(NewsLike).where(NewsLike.news_post_id == news_post_id, NewsLike.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_like(db: AsyncSession, news_post_id: str, user_id: str) -> NewsLike:
    like = NewsLike(news_post_id=news_post_id, user_id=user_id)
    db.add(like)
    await db.flush()
    return like


async def delete_like(db: AsyncSession, like: NewsLike) -> None:
    await db.delete(like)
    await db.flush()


async def count_likes(db: AsyncSession, news_post_ids: list[str]) -> dict[str, int]:
    if not news_post_ids:
        return {}
    result = await db.execute(
        select(NewsLike.news_post_id, func.count(NewsLike.id))
        .where(NewsLike.news_post_id.in_(news_post_ids))
        .group_by(NewsLike.news_post_id)
    )
    return {post_id: count for post_id, count in result.all()}


async def get_liked_post_ids(db: AsyncSession, news_post_ids: list[str], user_id: str) -> set[str]:
    if not news_post_ids:
        return set()
    result = await db.execute(
        select(NewsLike.news_post_id).where(
            NewsLike.news_post_id.in_(news_post_ids), NewsLike.user_id == user_id
        )
    )
    return set(result.scalars().all())


# Polls


async def get_option(db: AsyncSession, poll_option_id: str) -> PollOption | None:
    result = await db.execute(
        select(PollOption)
        .options(selectinload(PollOption.news_post))
        .where(PollOption.id == poll_option_id)
    )
    return result.scalar_one_or_none()


async def get_vote(db: AsyncSession, news_post_id: str, user_id: str) -> PollVote | None:
    result = await db.execute(
        select(PollVote).where(PollVote.news_post_id == news_post_id, PollVote.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_vote(
    db: AsyncSession, *, poll_option_id: str, news_post_id: str, user_id: str
) -> PollVote:
    vote = PollVote(poll_option_id=poll_option_id, news_post_id=news_post_id, user_id=user_id)
    db.add(vote)
    await db.flush()
    return vote


async def delete_vote(db: AsyncSession, vote: PollVote) -> None:
    await db.delete(vote)
    await db.flush()


async def count_votes(db: AsyncSession, option_ids: list[str]) -> dict[str, int]:
    if not option_ids:
        return {}
    result = await db.execute(
        select(PollVote.poll_option_id, func.count(PollVote.id))
        .where(PollVote.poll_option_id.in_(option_ids))
        .group_by(PollVote.poll_option_id)
    )
    return {option_id: count for option_id, count in result.all()}


async def get_voted_option_ids(db: AsyncSession, option_ids: list[str], user_id: str) -> set[str]:
    if not option_ids:
        return set()
    result = await db.execute(
        select(PollVote.poll_option_id).where(
            PollVote.poll_option_id.in_(option_ids), PollVote.user_id == user_id
        )
    )
    return set(result.scalars().all())
