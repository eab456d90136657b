"""Tests for image path rewriting and diagram block extraction."""

import logging

import pytest

from preview_postprocess import (
    extract_diagram_blocks,
    fix_image_paths,
    is_external,
    post_process,
    resolve_image_path,
)
from preview_render import render_markdown

HOOKS = 'class="preview-image" onclick="openImageModal(this.src)"'


class TestResolveImagePath:
    @pytest.mark.parametrize(
        "src, expected",
        [
            ("img/a.png", "notes/sub/img/a.png"),
            ("../img/a.png", "notes/img/a.png"),
            ("./img/../a.png", "notes/sub/a.png"),
            ("../../../a.png", "../a.png"),
        ],
    )
    def test_relative_to_document_directory(self, src, expected) -> None:
        assert resolve_image_path(src, "notes/sub/page.md") == expected

    def test_document_at_root(self) -> None:
        assert resolve_image_path("./img/a.png", "page.md") == "img/a.png"

    @pytest.mark.parametrize("src", ["/assets/a.png", "http://x/a.png", "https://x/a.png", "data:image/png;base64,AA"])
    def test_external_sources(self, src) -> None:
        assert is_external(src)

    def test_relative_source_is_not_external(self) -> None:
        assert not is_external("img/a.png")


class TestImagePaths:
    def test_relative_image_rewritten(self) -> None:
        out = fix_image_paths('<p><img alt="a" src="img/a.png" /></p>', "notes/sub/page.md")
        assert out == f'<p><img alt="a" src="notes/sub/img/a.png" {HOOKS} /></p>'

    def test_parent_relative_image_rewritten(self) -> None:
        out = fix_image_paths('<img src="../img/a.png">', "notes/sub/page.md")
        assert out == f'<img src="notes/img/a.png" {HOOKS}>'

    @pytest.mark.parametrize("src", ["/assets/a.png", "https://x/a.png", "data:image/png;base64,AAAA"])
    def test_external_image_keeps_src_but_gains_hooks(self, src) -> None:
        out = fix_image_paths(f'<img src="{src}">', "notes/sub/page.md")
        assert out == f'<img src="{src}" {HOOKS}>'

    def test_existing_class_is_extended(self) -> None:
        out = fix_image_paths('<img class="wide" src="a.png">', "page.md")
        assert out == '<img class="wide preview-image" src="a.png" onclick="openImageModal(this.src)">'

    def test_finalized_image_passes_through(self) -> None:
        tag = f'<img src="img/a.png" {HOOKS}>'
        assert fix_image_paths(tag, "notes/sub/page.md") == tag

    def test_running_twice_is_idempotent(self) -> None:
        html = '<p>x</p><img alt="a" src="img/a.png" /><img src="https://x/a.png"><p>y &amp; z</p>'
        once = post_process(html, "notes/sub/page.md")
        assert post_process(once, "notes/sub/page.md") == once

    def test_surrounding_markup_is_untouched(self) -> None:
        html = '<h1 id="t">T &amp; U</h1>\n<p>before <img src="a.png"> after</p>\n<!-- note -->'
        out = fix_image_paths(html, "d/page.md")
        assert out == f'<h1 id="t">T &amp; U</h1>\n<p>before <img src="d/a.png" {HOOKS}> after</p>\n<!-- note -->'

    def test_image_without_src_untouched(self) -> None:
        assert fix_image_paths('<img alt="x">', "page.md") == '<img alt="x">'

    def test_escaped_markup_in_code_untouched(self) -> None:
        html = '<pre><code>&lt;img src="a.png"&gt;</code></pre>'
        assert fix_image_paths(html, "d/page.md") == html

    def test_unterminated_tag_leaves_rest_verbatim(self) -> None:
        html = '<p><img src="a.png"></p><p>tail</p><img src="b.png'
        out = fix_image_paths(html, "notes/x.md")
        assert out == f'<p><img src="notes/a.png" {HOOKS}></p><p>tail</p><img src="b.png'

    def test_tag_missing_close_leaves_rest_verbatim(self, caplog) -> None:
        html = '<img src="x.png"><img src="a.png" <b>bold</b><img src="c.png">'
        with caplog.at_level(logging.WARNING):
            out = fix_image_paths(html, "notes/x.md")
        assert out == f'<img src="notes/x.png" {HOOKS}><img src="a.png" <b>bold</b><img src="c.png">'
        assert "malformed tag" in caplog.text

    @pytest.mark.parametrize("opener", ['<a title="a < b">', "<a title='x<y' href=\"#\">"])
    def test_angle_bracket_inside_quoted_value_is_not_malformed(self, opener, caplog) -> None:
        html = f'<p>{opener}x</a></p><p><img src="img/a.png" alt="a"></p>'
        with caplog.at_level(logging.WARNING):
            out = fix_image_paths(html, "notes/page.md")
        assert out == f'<p>{opener}x</a></p><p><img src="notes/img/a.png" alt="a" {HOOKS}></p>'
        assert "malformed tag" not in caplog.text

    def test_ceiling_falls_back_to_original(self, caplog) -> None:
        html = '<img src="a.png"><img src="b.png"><img src="c.png">'
        with caplog.at_level(logging.WARNING):
            assert fix_image_paths(html, "d/page.md", ceiling=2) == html
        assert "image rewriting skipped" in caplog.text

    def test_ceiling_not_reached(self) -> None:
        html = '<img src="a.png"><img src="b.png">'
        assert fix_image_paths(html, "d/page.md", ceiling=2) != html


class TestDiagramBlocks:
    def test_language_mermaid_block_unescaped(self) -> None:
        html = '<pre><code class="language-mermaid">graph TD\nA --&gt; B\n</code></pre>'
        assert extract_diagram_blocks(html) == '<div class="mermaid">graph TD\nA --> B</div>'

    def test_plain_mermaid_class(self) -> None:
        html = '<pre><code class="mermaid">  A &amp; B &lt;x&gt;  </code></pre>'
        assert extract_diagram_blocks(html) == '<div class="mermaid">A & B <x></div>'

    def test_other_code_blocks_untouched(self) -> None:
        html = '<pre><code class="language-python">a = 1 &gt; 0\n</code></pre>'
        assert extract_diagram_blocks(html) == html

    def test_blocks_processed_left_to_right(self) -> None:
        html = (
            '<p>a</p><pre><code class="language-mermaid">X</code></pre>'
            '<p>b</p><pre><code class="language-python">y</code></pre>'
            '<pre><code class="mermaid">Z</code></pre><p>c</p>'
        )
        assert extract_diagram_blocks(html) == (
            '<p>a</p><div class="mermaid">X</div>'
            '<p>b</p><pre><code class="language-python">y</code></pre>'
            '<div class="mermaid">Z</div><p>c</p>'
        )

    def test_unterminated_block_halts_extraction(self, caplog) -> None:
        html = (
            '<pre><code class="mermaid">X</code></pre>'
            '<pre><code class="language-mermaid">Y</code><p>after</p>'
        )
        with caplog.at_level(logging.WARNING):
            out = extract_diagram_blocks(html, "d.md")
        assert out == '<div class="mermaid">X</div><pre><code class="language-mermaid">Y</code><p>after</p>'
        assert "unterminated diagram block" in caplog.text

    def test_rendered_markdown_yields_raw_source(self) -> None:
        out = post_process(render_markdown("```mermaid\nA --> B\n```\n"), "d.md")
        assert '<div class="mermaid">A --> B</div>' in out
        assert "&gt;" not in out
