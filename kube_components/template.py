"""Rendering of chart values templates."""

import logging
from typing import Any

from jinja2 import Environment, StrictUndefined, TemplateError

from .exceptions import TemplateException

__all__ = [
    "render_template",
]

_LOGGER = logging.getLogger(__name__)

_ENVIRONMENT = Environment(
    undefined=StrictUndefined,
    keep_trailing_newline=True,
    autoescape=False,
)


def render_template(template: str, context: dict[str, Any]) -> str:
    """Render a template with the given variables.

    Referencing a variable missing from the context is an error rather than an
    empty string.
    """
    try:
        return _ENVIRONMENT.from_string(template).render(**context)
    except TemplateError as err:
        raise TemplateException(f"rendering values template failed: {err}") from err
