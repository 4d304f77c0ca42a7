import re
from typing import Iterable, List, Optional

from .models import Feed, FeedReference

_FEED_RE = re.compile(r"\w+:\w+", re.ASCII)
_FEED_WITH_TOKEN_RE = re.compile(r"\w+:\w+ .*", re.ASCII)


def format_feed(feed: Feed) -> str:
    text = feed.feed_id.value()
    if feed.token:
        text += " " + feed.token
    return text


def match_feed(text: str) -> Optional[FeedReference]:
    if _FEED_RE.fullmatch(text) is None:
        return None
    slug, user_id = text.split(":")
    return FeedReference(slug=slug, user_id=user_id)


def match_feed_with_token(text: str) -> Optional[FeedReference]:
    if _FEED_WITH_TOKEN_RE.fullmatch(text) is None:
        return None
    parts = text.split(":")
    pieces = parts[1].split(" ")
    return FeedReference(slug=parts[0], user_id=pieces[0], token=pieces[1])


def parse_feeds(values: Iterable[str]) -> List[FeedReference]:
    """Match every string against both feed layouts, keeping every hit in order."""
    feeds: List[FeedReference] = []
    for value in values:
        plain = match_feed(value)
        if plain is not None:
            feeds.append(plain)
        with_token = match_feed_with_token(value)
        if with_token is not None:
            feeds.append(with_token)
    return feeds


__all__ = ["format_feed", "match_feed", "match_feed_with_token", "parse_feeds"]
