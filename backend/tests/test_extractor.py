"""Unit tests for the content extractor.

Covers noise stripping, clamp removal, main-node selection, reference
resolution, title resolution, and idempotency on already-extracted output.
"""

from __future__ import annotations

import pytest
from bs4 import BeautifulSoup

from unwall.services.retrieval.extractor import (
    UNTITLED,
    CandidateRule,
    ContentExtractor,
    extract,
    is_noise_node,
    resolve_reference,
    resolve_srcset,
)

BASE_URL = "https://x.com/y"

LONG_TEXT = (
    "Residents packed the library annex on Monday evening to hear the proposal "
    "for a new riverside park, which planners say will open in stages over the "
    "next several summers."
)


def _tag(markup: str):
    return BeautifulSoup(markup, "html.parser").find(True)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


class TestResolveReference:
    def test_root_relative_path(self) -> None:
        assert resolve_reference("/a/b.png", "https://x.com/y") == "https://x.com/a/b.png"

    def test_document_relative_path(self) -> None:
        assert resolve_reference("img/c.png", "https://x.com/y/z") == "https://x.com/y/img/c.png"

    def test_protocol_relative_path(self) -> None:
        assert resolve_reference("//cdn.x.com/i.png", BASE_URL) == "https://cdn.x.com/i.png"

    def test_absolute_url_unchanged(self) -> None:
        assert resolve_reference("https://cdn.x.com/i.png", BASE_URL) == "https://cdn.x.com/i.png"

    @pytest.mark.parametrize(
        "reference",
        [
            "javascript:void(0)",
            "#section-2",
            "mailto:desk@x.com",
            "data:image/png;base64,iVBORw0KGgo=",
        ],
    )
    def test_special_references_untouched(self, reference: str) -> None:
        assert resolve_reference(reference, BASE_URL) == reference


class TestResolveSrcset:
    def test_each_candidate_resolved(self) -> None:
        assert resolve_srcset("/a.png 1x, img/b.png 2x", "https://x.com/y/") == (
            "https://x.com/a.png 1x, https://x.com/y/img/b.png 2x"
        )

    def test_width_descriptors_and_absolute_kept(self) -> None:
        srcset = "https://cdn.x.com/s.jpg 480w,/m.jpg 960w"

        assert resolve_srcset(srcset, BASE_URL) == "https://cdn.x.com/s.jpg 480w, https://x.com/m.jpg 960w"

    def test_data_uri_untouched(self) -> None:
        srcset = "data:image/png;base64,iVBORw0KGgo= 1x"

        assert resolve_srcset(srcset, BASE_URL) == srcset


class TestIsNoiseNode:
    @pytest.mark.parametrize(
        "markup",
        [
            '<div class="paywall">x</div>',
            '<div class="tp-modal-backdrop">x</div>',
            '<div id="piano-inline">x</div>',
            '<div class="Subscription-Prompt">x</div>',
            '<section class="newsletter-signup">x</section>',
            '<div class="ad">x</div>',
            '<div class="ad-slot">x</div>',
            '<div class="ads_container">x</div>',
            '<div class="advertisement">x</div>',
            '<div id="wm-ipp-base">x</div>',
            '<div class="nag-banner">x</div>',
            '<div id="login-prompt">x</div>',
            '<div class="article-truncated">x</div>',
        ],
    )
    def test_noise_patterns_match(self, markup: str) -> None:
        assert is_noise_node(_tag(markup)) is True

    @pytest.mark.parametrize(
        "markup",
        [
            '<div class="lead-image">x</div>',
            '<div class="headline">x</div>',
            '<div class="story">x</div>',
            "<p>plain</p>",
        ],
    )
    def test_regular_nodes_kept(self, markup: str) -> None:
        assert is_noise_node(_tag(markup)) is False

    def test_body_never_noise(self) -> None:
        soup = BeautifulSoup('<html class="modal-open"><body class="overlay-on"></body></html>', "html.parser")
        assert is_noise_node(soup.html) is False
        assert is_noise_node(soup.body) is False


# ---------------------------------------------------------------------------
# Full pipeline
# ---------------------------------------------------------------------------


class TestExtract:
    def test_article_content_isolated(self, article_html: str, paragraphs: list[str]) -> None:
        content = extract(article_html, BASE_URL)

        for text in paragraphs:
            assert text in content.text
        assert content.paragraph_count == 4
        assert "Home" not in content.text
        assert "Copyright" not in content.text
        assert "dataLayer" not in content.html
        assert "Subscribe now" not in content.text
        assert "Advertisement" not in content.text

    def test_structural_nodes_removed(self) -> None:
        markup = f"""<html><body><article>
<p>{LONG_TEXT}</p>
<form><input name="q"></form>
<button>Share</button>
<svg><circle r="4"></circle></svg>
<div role="complementary">Trending now</div>
<noscript>Turn on scripts</noscript>
</article></body></html>"""
        content = extract(markup, BASE_URL)

        assert LONG_TEXT in content.text
        for gone in ("<form", "<button", "<svg", "Trending now", "Turn on scripts"):
            assert gone not in content.html

    def test_clamped_paragraphs_fully_kept(self) -> None:
        markup = f"""<html><body>
<div class="article-body" style="max-height: 120px; overflow: hidden">
<p class="line-clamp-3">{LONG_TEXT}</p>
<p class="truncate body-copy">{LONG_TEXT} Second.</p>
<p>{LONG_TEXT} Third.</p>
</div>
<div class="fade-out-gradient"></div>
</body></html>"""
        content = extract(markup, BASE_URL)

        assert content.paragraph_count == 3
        assert "style=" not in content.html
        assert "line-clamp" not in content.html
        assert "truncate" not in content.html
        assert 'class="body-copy"' in content.html
        assert f"{LONG_TEXT} Third." in content.text

    @pytest.mark.parametrize(
        "layout",
        [
            # article candidate
            "<article><p>{text}</p><div class='paywall'><p>Locked</p></div></article>",
            # class candidate
            "<div class='entry-content'><p>{text}</p><div class='paywall'>Locked</div></div>",
            # largest container fallback
            "<div id='wrapper'><section><p>{text}</p><aside class='x'>s</aside>"
            "<div class='paywall'>Locked</div></section></div>",
            # whole body fallback
            "<p>Short intro.</p><div class='paywall'>Locked</div><p>Short outro.</p>",
        ],
    )
    def test_paywall_never_survives(self, layout: str) -> None:
        markup = f"<html><body>{layout.format(text=LONG_TEXT)}</body></html>"
        content = extract(markup, BASE_URL)

        assert "paywall" not in content.html
        assert "Locked" not in content.text

    def test_largest_container_fallback(self) -> None:
        markup = f"""<html><body>
<div id="sidebar"><p>{LONG_TEXT[:120]}</p></div>
<div id="wrapper"><p>{LONG_TEXT}</p><p>{LONG_TEXT}</p></div>
</body></html>"""
        content = extract(markup, BASE_URL)

        assert content.paragraph_count == 2
        assert content.text == f"{LONG_TEXT}\n{LONG_TEXT}"

    def test_short_candidate_skipped(self) -> None:
        markup = f"""<html><body>
<article><p>Teaser only.</p></article>
<main><p>{LONG_TEXT}</p></main>
</body></html>"""
        content = extract(markup, BASE_URL)

        assert "Teaser only." not in content.text
        assert LONG_TEXT in content.text

    def test_boilerplate_leaves_removed(self) -> None:
        markup = f"""<html><body><article>
<p>{LONG_TEXT}</p>
<p>Advertisement</p>
<span>Supported by</span>
<div>See more on: City Hall</div>
<p>Advertisement revenue fell sharply this quarter.</p>
</article></body></html>"""
        content = extract(markup, BASE_URL)

        assert "Supported by" not in content.text
        assert "See more on" not in content.text
        assert "Advertisement revenue fell sharply this quarter." in content.text
        assert "<p>Advertisement</p>" not in content.html

    def test_references_absolutized(self) -> None:
        markup = f"""<html><body><article>
<p>{LONG_TEXT} <a href="/news/next">Next</a> <a href="javascript:void(0)">Menu</a></p>
<img src="/a/b.png">
<img data-src="lazy/pic.jpg">
<img src="data:image/gif;base64,R0lGOD=">
</article></body></html>"""
        content = extract(markup, "https://x.com/y/")
        soup = BeautifulSoup(content.html, "html.parser")

        sources = [img["src"] for img in soup.find_all("img")]
        assert sources == [
            "https://x.com/a/b.png",
            "https://x.com/y/lazy/pic.jpg",
            "data:image/gif;base64,R0lGOD=",
        ]

        links = soup.find_all("a")
        assert links[0]["href"] == "https://x.com/news/next"
        assert links[1]["href"] == "javascript:void(0)"
        for link in links:
            assert link["target"] == "_blank"
            assert link["rel"] == ["noopener", "noreferrer"]

    def test_srcset_absolutized(self) -> None:
        markup = f"""<html><body><article>
<p>{LONG_TEXT}</p>
<picture>
<source srcset="/wide.webp 2x, /narrow.webp 1x" type="image/webp">
<img src="/pic.jpg" srcset="pic-480.jpg 480w, https://cdn.x.com/pic-960.jpg 960w">
</picture>
</article></body></html>"""
        content = extract(markup, "https://x.com/y/")
        soup = BeautifulSoup(content.html, "html.parser")

        assert soup.source["srcset"] == "https://x.com/wide.webp 2x, https://x.com/narrow.webp 1x"
        assert soup.img["srcset"] == "https://x.com/y/pic-480.jpg 480w, https://cdn.x.com/pic-960.jpg 960w"

    def test_idempotent_on_own_output(self, article_html: str) -> None:
        first = extract(article_html, BASE_URL)
        second = extract(first.html, BASE_URL)

        assert second.html == first.html
        assert second.paragraph_count == first.paragraph_count

    def test_removed_node_leaves_single_newline(self, article_html: str) -> None:
        html = extract(article_html, BASE_URL).html

        assert "\n\n" not in html
        assert "years.</p>\n<p><a" in html

    def test_preformatted_whitespace_kept(self) -> None:
        markup = f"""<html><body><article>
<p>{LONG_TEXT}</p>
<pre><code>x = 1</code>


<code>y = 2</code></pre>
</article></body></html>"""
        content = extract(markup, BASE_URL)

        assert "<pre><code>x = 1</code>\n\n\n<code>y = 2</code></pre>" in content.html

    def test_empty_markup(self) -> None:
        content = extract("", BASE_URL)

        assert content.title == UNTITLED
        assert content.text == ""
        assert content.paragraph_count == 0


class TestDocumentWithoutBody:
    def test_main_node_selected_without_body_tag(self) -> None:
        article = "".join(f"<p>{LONG_TEXT} Part {n}.</p>" for n in range(3))
        markup = (
            "<!doctype html><html><head><title>Story</title>"
            '<meta name="description" content="d"><link rel="stylesheet" href="/s.css"></head>'
            f"<div class='sidebar-list'><p>Most read today SIDEBAR</p></div>"
            f"<article>{article}</article></html>"
        )
        content = extract(markup, BASE_URL)

        assert content.title == "Story"
        assert content.paragraph_count == 3
        assert "SIDEBAR" not in content.text
        for gone in ("<title>", "<meta", "<link", "DOCTYPE", "doctype", "<html"):
            assert gone not in content.html

    @pytest.mark.parametrize(
        "markup",
        [
            "<!doctype html><html><head><title>T</title></head><p>Short intro.</p><p>Short outro.</p></html>",
            "<!doctype html><title>T</title><p>Short intro.</p><p>Short outro.</p>",
        ],
    )
    def test_whole_document_fallback_drops_head(self, markup: str) -> None:
        content = extract(markup, BASE_URL)

        assert content.title == "T"
        assert content.html == "<p>Short intro.</p><p>Short outro.</p>"
        assert content.paragraph_count == 2

    def test_fragment_used_as_is(self) -> None:
        content = extract(f"<h2>Heading</h2><p>{LONG_TEXT}</p>", BASE_URL)

        assert content.html == f"<h2>Heading</h2><p>{LONG_TEXT}</p>"
        assert content.title == "Heading"


class TestResolveTitle:
    def test_og_title_first(self, article_html: str) -> None:
        assert extract(article_html, BASE_URL).title == "Council Approves Transit Budget"

    def test_title_tag_second(self) -> None:
        markup = f"<html><head><title>Page Title</title></head><body><h1>Heading</h1><p>{LONG_TEXT}</p></body></html>"
        assert extract(markup, BASE_URL).title == "Page Title"

    def test_empty_og_title_ignored(self) -> None:
        markup = (
            '<html><head><meta property="og:title" content="  ">'
            f"<title>Fallback</title></head><body><p>{LONG_TEXT}</p></body></html>"
        )
        assert extract(markup, BASE_URL).title == "Fallback"

    def test_first_h1(self) -> None:
        markup = f"<html><body><h1>Big Heading</h1><article><p>{LONG_TEXT}</p></article></body></html>"
        assert extract(markup, BASE_URL).title == "Big Heading"

    def test_content_h2(self) -> None:
        markup = f"<html><body><article><h2>Section Heading</h2><p>{LONG_TEXT}</p></article></body></html>"
        assert extract(markup, BASE_URL).title == "Section Heading"

    def test_placeholder(self) -> None:
        markup = f"<html><body><article><p>{LONG_TEXT}</p></article></body></html>"
        assert extract(markup, BASE_URL).title == UNTITLED


class TestCustomCandidates:
    def test_candidate_order_respected(self) -> None:
        extractor = ContentExtractor(
            candidates=(CandidateRule(".story-text", min_text_length=10),)
        )
        markup = f"""<html><body>
<article><p>{LONG_TEXT}</p></article>
<div class="story-text"><p>Custom container wins here.</p></div>
</body></html>"""
        content = extractor.extract(markup, BASE_URL)

        assert content.text == "Custom container wins here."
