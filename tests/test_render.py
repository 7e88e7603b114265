import pytest

from core.config import TEMPLATE_DIR
from core.exceptions import TemplateError
from wiki.services.render import TemplateRenderer, render_markdown
from wiki.views import IndexView, PageView


def test_markdown_heading():
    assert render_markdown("# Title") == "<h1>Title</h1>"


def test_markdown_is_deterministic():
    text = "# A\n\n| x | y |\n|---|---|\n| 1 | 2 |\n\n```\ncode\n```\n"

    assert render_markdown(text) == render_markdown(text)


def test_markdown_empty_input():
    assert render_markdown("") == ""
    assert render_markdown(None) == ""


def test_markdown_tolerates_broken_constructs():
    html = render_markdown("**unclosed [link](\n<div>\n``` never closed")

    assert isinstance(html, str)


def test_page_view_serializes_template_keys():
    view = PageView(
        title="Home", id=1, raw_content="# x", content="<h1>x</h1>", timestamp="now"
    )

    context = view.model_dump(by_alias=True)
    assert context["rawContent"] == "# x"
    assert context["newPage"] is False


@pytest.mark.anyio
async def test_render_index():
    templates = TemplateRenderer(TEMPLATE_DIR)

    html = await templates.render("index.html", IndexView(title="Wiki home", pages=["a", "b"]))

    assert html.startswith("<!DOCTYPE html>")
    assert '<a href="/wiki/a">a</a>' in html


@pytest.mark.anyio
async def test_render_escapes_raw_content():
    templates = TemplateRenderer(TEMPLATE_DIR)
    view = PageView(
        title="Home",
        id=3,
        raw_content="<script>",
        content="<p>ok</p>",
        timestamp="now",
    )

    html = await templates.render("page.html", view)

    assert "&lt;script&gt;" in html
    assert "<p>ok</p>" in html


@pytest.mark.anyio
async def test_missing_optional_keys_render_empty(tmp_path):
    (tmp_path / "greeting.html").write_text("Hello {{ name }}{{ user.nick }}!")
    templates = TemplateRenderer(tmp_path)

    assert await templates.render("greeting.html", {}) == "Hello !"


@pytest.mark.anyio
async def test_missing_template(tmp_path):
    templates = TemplateRenderer(tmp_path)

    with pytest.raises(TemplateError):
        await templates.render("nope.html", {})


@pytest.mark.anyio
async def test_failing_template(tmp_path):
    (tmp_path / "broken.html").write_text("{{ 1 // 0 }}")
    templates = TemplateRenderer(tmp_path)

    with pytest.raises(TemplateError):
        await templates.render("broken.html", {})
