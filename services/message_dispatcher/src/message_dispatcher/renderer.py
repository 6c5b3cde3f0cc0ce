"""Jinja2 template compilation for message content."""

from typing import Any

from jinja2 import StrictUndefined, TemplateError
from jinja2.sandbox import SandboxedEnvironment

from message_dispatcher.errors import TemplateCompileError

_text_env = SandboxedEnvironment(
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=False,
)

_html_env = SandboxedEnvironment(
    autoescape=True,
    undefined=StrictUndefined,
    keep_trailing_newline=False,
)


def render_template(
    template_str: str, data: dict[str, Any], *, html: bool = False
) -> str:
    """Render *template_str* against *data*.

    Uses SandboxedEnvironment to prevent SSTI and StrictUndefined so a
    missing variable fails the render instead of producing a blank. Only
    HTML (email) content is autoescaped.

    Raises TemplateCompileError for syntax errors, undefined variables,
    sandbox violations and errors raised while evaluating expressions.
    """
    env = _html_env if html else _text_env
    try:
        return env.from_string(template_str).render(data)
    except TemplateError as exc:
        raise TemplateCompileError(str(exc) or type(exc).__name__) from exc
    except (ArithmeticError, LookupError, TypeError, ValueError) as exc:
        # Errors raised by expressions evaluated inside the template.
        raise TemplateCompileError(f"{type(exc).__name__}: {exc}") from exc
