"""Tests for content type resolution."""

import pytest

from edgeplan.assets.detectors import ContentTypeResolver


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("index.html", ("text/html", True)),
        ("docs/page.htm", ("text/html", True)),
        ("app.mjs", ("text/javascript", True)),
        ("icons/logo.svg", ("image/svg+xml", True)),
        ("logo.png", ("image/png", False)),
        ("fonts/inter.woff2", ("font/woff2", False)),
        ("module.wasm", ("application/wasm", False)),
        ("feed.jsonld", ("application/ld+json", True)),
    ],
)
def test_resolve_known_extensions(path: str, expected: tuple[str, bool]) -> None:
    assert ContentTypeResolver().resolve(path) == expected


def test_unknown_extension_falls_back_to_octet_stream() -> None:
    resolver = ContentTypeResolver()

    assert resolver.resolve("archive.tar.xz") == ("application/octet-stream", False)
    assert resolver.resolve("LICENSE") == ("application/octet-stream", False)
    assert resolver.content_type("archive.tar.xz") == "application/octet-stream"


def test_extension_match_is_case_sensitive() -> None:
    assert ContentTypeResolver().resolve("LOGO.PNG") == ("application/octet-stream", False)


def test_site_association_marker_resolves_as_json() -> None:
    resolver = ContentTypeResolver()

    assert resolver.resolve(".well-known/site-association-json") == ("application/json", True)
    assert (
        resolver.content_type(".well-known/site-association-json")
        == "application/json;charset=utf-8"
    )


def test_charset_suffix_follows_text_encoding() -> None:
    resolver = ContentTypeResolver()

    assert resolver.content_type("index.html") == "text/html;charset=utf-8"
    assert resolver.content_type("index.html", "iso-8859-1") == "text/html;charset=iso-8859-1"
    assert resolver.content_type("index.html", "none") == "text/html"
    assert resolver.content_type("logo.png", "utf-8") == "image/png"


def test_override_is_returned_verbatim() -> None:
    resolver = ContentTypeResolver()

    assert resolver.content_type("bundle.js", "utf-8", "application/zip") == "application/zip"
