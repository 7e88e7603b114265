import html
import pathlib
from typing import Any, Mapping, Optional, Union

import markdown
from jinja2 import (
    ChainableUndefined,
    Environment,
    FileSystemLoader,
    TemplateNotFound,
    select_autoescape,
)
from pydantic import BaseModel

from core.config import TEMPLATE_DIR
from core.exceptions import TemplateError, handle_exception

MARKDOWN_EXTENSIONS = ["tables", "fenced_code"]


def render_markdown(text: Optional[str]) -> str:
    """Convert markdown source to an HTML fragment, never raising"""
    if not text:
        return ""
    try:
        return markdown.markdown(text, extensions=MARKDOWN_EXTENSIONS)
    except Exception as e:
        handle_exception(e, "Markdown rendering failed", source="render")
        return f"<pre>{html.escape(text)}</pre>"


class TemplateRenderer:
    """Renders view templates from a directory into full HTML documents"""

    def __init__(self, directory: Union[str, pathlib.Path] = TEMPLATE_DIR):
        self.env = Environment(
            loader=FileSystemLoader(str(directory)),
            autoescape=select_autoescape(),
            undefined=ChainableUndefined,
            enable_async=True,
        )

    async def render(self, name: str, view: Union[BaseModel, Mapping[str, Any]]) -> str:
        if isinstance(view, BaseModel):
            context = view.model_dump(by_alias=True)
        else:
            context = dict(view)

        try:
            template = self.env.get_template(name)
            return await template.render_async(**context)
        except TemplateNotFound as e:
            raise TemplateError(f"Template {name} not found") from e
        except Exception as e:
            raise TemplateError(f"Template {name} failed to render: {e}") from e
