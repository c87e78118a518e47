"""
News Service Layer

Business logic for school and class news feeds, likes and polls.

Likes and votes toggle:
- liking a liked post removes the like
- voting for the option already voted for removes the vote
- voting for another option of the same poll moves the vote
A user therefore holds at most one like per post and one vote per poll.
"""

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from edubridge.core.errors import AccessDeniedError, InvalidRequestError, NotFoundError
from edubridge.modules import access
from edubridge.modules.news import repository
from edubridge.modules.news.models import NewsPost, NewsPostType, NewsScope
from edubridge.modules.news.schemas import (
    LikeResponse,
    NewsPostResponse,
    PollOptionResponse,
    VoteResponse,
)

logger = logging.getLogger(__name__)

MIN_POLL_OPTIONS = 2


async def _build_post_responses(
    db: AsyncSession, posts: list[NewsPost], user_id: str
) -> list[NewsPostResponse]:
    post_ids = [p.id for p in posts]
    option_ids = [o.id for p in posts if p.type == NewsPostType.POLL for o in p.poll_options]

    like_counts = await repository.count_likes(db, post_ids)
    liked = await repository.get_liked_post_ids(db, post_ids, user_id)
    vote_counts = await repository.count_votes(db, option_ids)
    voted = await repository.get_voted_option_ids(db, option_ids, user_id)

    responses = []
    for post in posts:
        options = None
        if post.type == NewsPostType.POLL:
            options = [
                PollOptionResponse(
                    id=option.id,
                    option_text=option.option_text,
                    position=option.position,
                    vote_count=vote_counts.get(option.id, 0),
                    has_voted=option.id in voted,
                )
                for option in post.poll_options
            ]
        responses.append(
            NewsPostResponse(
                id=post.id,
                author_id=post.author_id,
                scope=post.scope,
                school_id=post.school_id,
                class_id=post.class_id,
                type=post.type,
                title=post.title,
                content=post.content,
                attachments=post.attachments or [],
                published_at=post.published_at,
                created_at=post.created_at,
                like_count=like_counts.get(post.id, 0),
                is_liked_by_user=post.id in liked,
                poll_options=options,
            )
        )
    return responses


async def get_school_news(
    db: AsyncSession, school_id: str, user_id: str
) -> list[NewsPostResponse]:
    """
    School feed, newest first.

    Raises:
        AccessDeniedError: If the caller has no path into the school
    """
    await access.require_school_access(db, school_id, user_id)
    posts = await repository.get_posts(db, scope=NewsScope.SCHOOL, school_id=school_id)
    return await _build_post_responses(db, posts, user_id)


async def get_class_news(db: AsyncSession, class_id: str, user_id: str) -> list[NewsPostResponse]:
    """
    Class feed, newest first.

    Raises:
        AccessDeniedError: If the caller is not a class member
    """
    await access.require_class_membership(db, class_id, user_id)
    posts = await repository.get_posts(db, scope=NewsScope.CLASS, class_id=class_id)
    return await _build_post_responses(db, posts, user_id)


async def create_news_post(
    db: AsyncSession,
    user_id: str,
    scope: NewsScope,
    title: str,
    content: str,
    post_type: NewsPostType = NewsPostType.ANNOUNCEMENT,
    school_id: str | None = None,
    class_id: str | None = None,
    poll_options: list[str] | None = None,
    attachments: list[Any] | None = None,
) -> NewsPostResponse:
    """
    Publish a news post to a school or class.

    Raises:
        InvalidRequestError: If the scope id is missing or a poll has fewer
            than two non-blank options
        AccessDeniedError: If the caller may not post in the scope
    """
    if scope == NewsScope.SCHOOL and not school_id:
        raise InvalidRequestError(
            "School ID is required for school-scoped news", "MISSING_SCOPE_ID"
        )
    if scope == NewsScope.CLASS and not class_id:
        raise InvalidRequestError("Class ID is required for class-scoped news", "MISSING_SCOPE_ID")

    options: list[str] = []
    if post_type == NewsPostType.POLL:
        options = [o.strip() for o in poll_options or [] if o and o.strip()]
        if len(options) < MIN_POLL_OPTIONS:
            raise InvalidRequestError("Polls must have at least 2 options", "INVALID_POLL")

    if scope == NewsScope.SCHOOL:
        allowed = await access.can_post_to_school(db, user_id, school_id)
    else:
        allowed = await access.can_post_to_class(db, user_id, class_id)
    if not allowed:
        logger.warning(f"User {user_id} may not post {scope.value} news")
        raise AccessDeniedError(
            "You do not have permission to post news in this scope", "NEWS_POST_DENIED"
        )

    post = await repository.create_post(
        db,
        author_id=user_id,
        scope=scope,
        school_id=school_id if scope == NewsScope.SCHOOL else None,
        class_id=class_id if scope == NewsScope.CLASS else None,
        post_type=post_type,
        title=title,
        content=content,
        attachments=attachments or [],
        poll_options=options,
    )
    await db.commit()

    logger.info(f"News post {post.id} ({post_type.value}) published by {user_id}")

    return NewsPostResponse(
        id=post.id,
        author_id=post.author_id,
        scope=post.scope,
        school_id=post.school_id,
        class_id=post.class_id,
        type=post.type,
        title=post.title,
        content=post.content,
        attachments=post.attachments,
        published_at=post.published_at,
        created_at=post.created_at,
        poll_options=[
            PollOptionResponse(id=o.id, option_text=o.option_text, position=o.position)
            for o in post.poll_options
        ]
        if post_type == NewsPostType.POLL
        else None,
    )


async def toggle_like(db: AsyncSession, news_post_id: str, user_id: str) -> LikeResponse:
    """
    Like or unlike a post.

    Raises:
        NotFoundError: If the post does not exist
    """
    if await repository.get_post(db, news_post_id) is None:
        raise NotFoundError("News post not found", "NEWS_POST_NOT_FOUND")

    like = await repository.get_like(db, news_post_id, user_id)
    if like is not None:
        await repository.delete_like(db, like)
        liked = False
    else:
        try:
            async with db.begin_nested():
                await repository.create_like(db, news_post_id, user_id)
        except IntegrityError:
            logger.info(f"Concurrent like on post {news_post_id} by {user_id}")
        liked = True
    await db.commit()

    counts = await repository.count_likes(db, [news_post_id])
    return LikeResponse(liked=liked, like_count=counts.get(news_post_id, 0))


async def vote_on_poll(db: AsyncSession, poll_option_id: str, user_id: str) -> VoteResponse:
    """
    Vote for a poll option.

    Raises:
        NotFoundError: If the option does not exist or its post is not a poll
    """
    option = await repository.get_option(db, poll_option_id)
    if option is None:
        raise NotFoundError("Poll option not found", "POLL_OPTION_NOT_FOUND")
    if option.news_post.type != NewsPostType.POLL:
        raise NotFoundError("This news post is not a poll", "NOT_A_POLL")

    news_post_id = option.news_post_id
    vote = await repository.get_vote(db, news_post_id, user_id)

    if vote is None:
        try:
            async with db.begin_nested():
                await repository.create_vote(
                    db, poll_option_id=option.id, news_post_id=news_post_id, user_id=user_id
                )
        except IntegrityError:
            vote = await repository.get_vote(db, news_post_id, user_id)
            if vote is None:
                raise
            vote.poll_option_id = option.id
        await db.commit()
        return VoteResponse(voted=True, message="Vote recorded")

    if vote.poll_option_id == option.id:
        await repository.delete_vote(db, vote)
        await db.commit()
        return VoteResponse(voted=False, message="Vote removed")

    vote.poll_option_id = option.id
    await db.commit()
    return VoteResponse(voted=True, message="Vote changed")


async def delete_news_post(db: AsyncSession, news_post_id: str, user_id: str) -> None:
    """
    Delete a post with its options, votes and likes.

    Raises:
        NotFoundError: If the post does not exist
        AccessDeniedError: If the caller is not the author
    """
    post = await repository.get_post(db, news_post_id)
    if post is None:
        raise NotFoundError("News post not found", "NEWS_POST_NOT_FOUND")
    if post.author_id != user_id:
        raise AccessDeniedError("You can only delete your own news posts", "NOT_POST_AUTHOR")

    await repository.delete_post(db, news_post_id)
    await db.commit()
    logger.info(f"News post {news_post_id} deleted by {user_id}")


async def can_post_to_school(db: AsyncSession, user_id: str, school_id: str) -> bool:
    return await access.can_post_to_school(db, user_id, school_id)


async def can_post_to_class(db: AsyncSession, user_id: str, class_id: str) -> bool:
    return await access.can_post_to_class(db, user_id, class_id)
