"""
Render prompt templates with the request query
"""
from jinja2 import Template, TemplateError

from llamanator.core.exceptions import RenderError


def render_prompt(template: Template, query: str) -> str:
    """
    Render a template with the query as its only variable

    Args:
        template: Compiled template from the registry
        query: Query text from the request

    Returns:
        Rendered prompt text

    Raises:
        RenderError: If the template references anything but `query` or fails at runtime
    """
    try:
        return template.render(query=query)
    except TemplateError as e:
        raise RenderError(
            f"Template {template.name} failed to render: {e}",
            metadata={"template": template.name}
        ) from e
    except (TypeError, ValueError, ArithmeticError, LookupError) as e:
        raise RenderError(
            f"Template {template.name} failed to render: {type(e).__name__}: {e}",
            metadata={"template": template.name}
        ) from e
