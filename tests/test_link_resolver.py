import pytest

from folio_bot.database.models import LinkRef, MediaKind, Provider
from folio_bot.utils.link_resolver import embed_url, resolve_batch, resolve_link, resolve_links, thumbnail_url, watch_url


@pytest.mark.parametrize(
    "url, provider, external_id",
    [
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ", Provider.YOUTUBE, "dQw4w9WgXcQ"),
        ("https://youtube.com/watch?v=dQw4w9WgXcQ&t=42s", Provider.YOUTUBE, "dQw4w9WgXcQ"),
        ("https://m.youtube.com/watch?feature=share&v=dQw4w9WgXcQ", Provider.YOUTUBE, "dQw4w9WgXcQ"),
        ("https://youtu.be/dQw4w9WgXcQ?si=abc", Provider.YOUTUBE, "dQw4w9WgXcQ"),
        ("youtu.be/dQw4w9WgXcQ", Provider.YOUTUBE, "dQw4w9WgXcQ"),
        ("https://www.youtube.com/shorts/a1B2c3D4e5_", Provider.YOUTUBE, "a1B2c3D4e5_"),
        ("https://www.youtube.com/embed/a1B2c3D4e5-", Provider.YOUTUBE, "a1B2c3D4e5-"),
        ("https://www.youtube.com/live/dQw4w9WgXcQ", Provider.YOUTUBE, "dQw4w9WgXcQ"),
        ("https://www.youtube-nocookie.com/embed/dQw4w9WgXcQ", Provider.YOUTUBE, "dQw4w9WgXcQ"),
        ("https://vimeo.com/76979871", Provider.VIMEO, "76979871"),
        ("https://vimeo.com/76979871/abcdef1234", Provider.VIMEO, "76979871"),
        ("https://vimeo.com/channels/staffpicks/76979871", Provider.VIMEO, "76979871"),
        ("https://player.vimeo.com/video/76979871?h=1", Provider.VIMEO, "76979871"),
        ("HTTPS://WWW.VIMEO.COM/76979871", Provider.VIMEO, "76979871"),
    ],
)
def test_resolves_supported_urls(url, provider, external_id):
    link = resolve_link(url)
    assert link == LinkRef(provider=provider, external_id=external_id)


@pytest.mark.parametrize(
    "url",
    [
        "",
        None,
        "not a url",
        "https://www.youtube.com/watch?v=short",
        "https://www.youtube.com/watch",
        "https://www.youtube.com/channel/UC1234567890",
        "https://youtu.be/",
        "https://vimeo.com/channels/staffpicks",
        "https://example.com/watch?v=dQw4w9WgXcQ",
        "ftp://youtube.com/watch?v=dQw4w9WgXcQ",
        "https://www.youtube.com.evil.example/watch?v=dQw4w9WgXcQ",
        "http://[::1",
    ],
)
def test_unsupported_or_malformed_urls_resolve_to_none(url):
    assert resolve_link(url) is None


def test_unique_id_is_provider_and_external_id():
    link = resolve_link("https://youtu.be/dQw4w9WgXcQ")
    assert link.unique_id == "youtube_dQw4w9WgXcQ"
    assert link.kind == MediaKind.YOUTUBE
    assert resolve_link("https://vimeo.com/42").unique_id == "vimeo_42"


def test_same_video_from_different_urls_shares_unique_id():
    a = resolve_link("https://www.youtube.com/watch?v=dQw4w9WgXcQ")
    b = resolve_link("https://youtu.be/dQw4w9WgXcQ")
    assert a.unique_id == b.unique_id


def test_resolve_links_drops_junk_and_duplicates_in_order():
    blob = """
    https://vimeo.com/111
    nonsense
    https://youtu.be/dQw4w9WgXcQ https://example.com/x
    https://www.youtube.com/watch?v=dQw4w9WgXcQ
    https://vimeo.com/222
    """
    links = resolve_links(blob)
    assert [link.unique_id for link in links] == ["vimeo_111", "youtube_dQw4w9WgXcQ", "vimeo_222"]


def test_resolve_batch_counts_skipped_lines():
    blob = "watch this: https://vimeo.com/111\n\nnonsense\nhttps://vimeo.com/111\nhttps://vimeo.com/222 junk"
    links, skipped = resolve_batch(blob)
    assert [link.unique_id for link in links] == ["vimeo_111", "vimeo_222"]
    # "nonsense" and the repeated vimeo_111 line; blank lines do not count
    assert skipped == 2


def test_resolve_links_of_nothing_is_empty():
    assert resolve_links("") == []
    assert resolve_links("just words here") == []


def test_playable_urls():
    yt = LinkRef(provider=Provider.YOUTUBE, external_id="dQw4w9WgXcQ")
    vm = LinkRef(provider=Provider.VIMEO, external_id="76979871")
    assert embed_url(yt) == "https://www.youtube.com/embed/dQw4w9WgXcQ"
    assert embed_url(vm) == "https://player.vimeo.com/video/76979871"
    assert watch_url(vm) == "https://vimeo.com/76979871"
    assert thumbnail_url(yt) == "https://img.youtube.com/vi/dQw4w9WgXcQ/hqdefault.jpg"
    assert thumbnail_url(vm) is None
