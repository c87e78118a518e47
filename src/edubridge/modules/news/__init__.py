"""
News module - School and class news feeds, likes and polls.
"""

from edubridge.modules.news.models import (
    NewsLike,
    NewsPost,
    NewsPostType,
    NewsScope,
    PollOption,
    PollVote,
)

__all__ = [
    "NewsLike",
    "NewsPost",
    "NewsPostType",
    "NewsScope",
    "PollOption",
    "PollVote",
]
