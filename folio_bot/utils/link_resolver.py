# folio_bot/utils/link_resolver.py
"""
Maps external video URLs to typed catalog references.

Only YouTube and Vimeo are recognised. Anything else, including malformed
URLs, resolves to None; callers never see an exception from here.
"""
import re
import logging
from typing import List, NamedTuple, Optional
from urllib.parse import urlsplit, parse_qs

from folio_bot.database.models import LinkRef, Provider

resolver_logger = logging.getLogger(__name__)

_YOUTUBE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")
_VIMEO_ID_RE = re.compile(r"^\d+$")

_YOUTUBE_HOSTS = {
    "youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com",
    "youtube-nocookie.com", "www.youtube-nocookie.com",
}
_YOUTUBE_SHORT_HOSTS = {"youtu.be", "www.youtu.be"}
_YOUTUBE_PATH_PREFIXES = ("embed", "shorts", "live", "v")
_VIMEO_HOSTS = {"vimeo.com", "www.vimeo.com", "player.vimeo.com"}


def _youtube_id(host: str, path_parts: List[str], query: str) -> Optional[str]:
    if host in _YOUTUBE_SHORT_HOSTS:
        candidate = path_parts[0] if path_parts else ""
    elif path_parts[:1] == ["watch"]:
        candidate = (parse_qs(query).get("v") or [""])[0]
    elif len(path_parts) >= 2 and path_parts[0] in _YOUTUBE_PATH_PREFIXES:
        candidate = path_parts[1]
    else:
        return None
    return candidate if _YOUTUBE_ID_RE.match(candidate) else None


def _vimeo_id(path_parts: List[str]) -> Optional[str]:
    # vimeo.com/123, vimeo.com/channels/staffpicks/123, player.vimeo.com/video/123,
    # and unlisted vimeo.com/123/abcdef all carry the id as the first numeric segment
    for part in path_parts:
        if _VIMEO_ID_RE.match(part):
            return part
    return None


def resolve_link(url: Optional[str]) -> Optional[LinkRef]:
    """Returns the LinkRef for a supported video URL, or None."""
    text = (url or "").strip()
    if not text or any(ch.isspace() for ch in text):
        return None
    if "://" not in text:
        text = f"https://{text}"
    try:
        parts = urlsplit(text)
        host = (parts.hostname or "").lower()
    except ValueError:
        resolver_logger.debug(f"Unparseable URL: {text[:100]}")
        return None
    if parts.scheme not in ("http", "https") or not host:
        return None

    path_parts = [p for p in parts.path.split("/") if p]
    if host in _YOUTUBE_HOSTS or host in _YOUTUBE_SHORT_HOSTS:
        video_id = _youtube_id(host, path_parts, parts.query)
        return LinkRef(provider=Provider.YOUTUBE, external_id=video_id) if video_id else None
    if host in _VIMEO_HOSTS:
        video_id = _vimeo_id(path_parts)
        return LinkRef(provider=Provider.VIMEO, external_id=video_id) if video_id else None
    return None


class BatchResolution(NamedTuple):
    links: List[LinkRef]
    skipped_lines: int  # non-blank lines that added no new link


def resolve_batch(text: Optional[str]) -> BatchResolution:
    """
    Resolves every line of a pasted block; a line may hold several whitespace-separated URLs.
    Unresolvable entries are dropped; duplicates keep their first position.
    """
    links: List[LinkRef] = []
    seen = set()
    skipped = 0
    for line in (text or "").splitlines():
        if not line.strip():
            continue
        added = False
        for token in line.split():
            link = resolve_link(token)
            if link is None:
                resolver_logger.debug(f"Dropping unrecognised link: {token[:100]}")
                continue
            if link.unique_id in seen:
                continue
            seen.add(link.unique_id)
            links.append(link)
            added = True
        if not added:
            skipped += 1
    return BatchResolution(links, skipped)


def resolve_links(text: Optional[str]) -> List[LinkRef]:
    return resolve_batch(text).links


def embed_url(link: LinkRef) -> str:
    if link.provider == Provider.YOUTUBE:
        return f"https://www.youtube.com/embed/{link.external_id}"
    return f"https://player.vimeo.com/video/{link.external_id}"


def watch_url(link: LinkRef) -> str:
    if link.provider == Provider.YOUTUBE:
        return f"https://www.youtube.com/watch?v={link.external_id}"
    return f"https://vimeo.com/{link.external_id}"


def thumbnail_url(link: LinkRef) -> Optional[str]:
    # Vimeo thumbnails need an oEmbed round-trip, which we do not make
    if link.provider == Provider.YOUTUBE:
        return f"https://img.youtube.com/vi/{link.external_id}/hqdefault.jpg"
    return None
