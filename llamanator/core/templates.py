"""
Prompt template registry

Templates live one per file in a directory; the file name without its
extension is the template name and the route name. Templates are compiled
once at startup and the registry is read-only afterwards.
"""
from pathlib import Path
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Union

from jinja2 import Environment, StrictUndefined, Template, TemplateSyntaxError

from llamanator.core.exceptions import TemplateLoadError
from llamanator.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

DEFAULT_TEMPLATE_NAME = "default"
DEFAULT_TEMPLATE_SOURCE = "{{ query }} Default template response."

# Prompts are plain text, so no HTML autoescaping
jinja_env = Environment(
    autoescape=False,
    undefined=StrictUndefined,
    keep_trailing_newline=True,
)


def compile_template(name: str, source: str) -> Template:
    """
    Compile template source

    Raises:
        TemplateLoadError: If the source is not a valid template
    """
    try:
        template = jinja_env.from_string(source)
    except TemplateSyntaxError as e:
        raise TemplateLoadError(
            f"Failed to parse template {name}: {e}",
            metadata={"template": name, "line": e.lineno}
        ) from e
    template.name = name
    return template


def load_template_file(path: Path) -> Template:
    """
    Read and compile a single template file

    Raises:
        TemplateLoadError: If the file cannot be read or parsed
    """
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateLoadError(
            f"Failed to load template file {path}: {e}",
            metadata={"path": str(path)}
        ) from e
    return compile_template(path.stem, source)


class TemplateRegistry:
    """Named, precompiled prompt templates"""

    def __init__(self, templates: Optional[Mapping[str, Template]] = None):
        self._templates: Mapping[str, Template] = MappingProxyType(dict(templates or {}))

    @classmethod
    def from_sources(cls, sources: Mapping[str, str]) -> "TemplateRegistry":
        """Build a registry from a name -> template source mapping"""
        return cls({name: compile_template(name, source) for name, source in sources.items()})

    @classmethod
    def from_directory(
        cls,
        templates_dir: Union[str, Path],
        extension: str = ".json",
    ) -> "TemplateRegistry":
        """
        Load every template file in a directory

        Files that fail to load are logged and skipped. When nothing loads, a
        default template is registered and written to the directory so the next
        start finds it.

        Args:
            templates_dir: Directory holding template files (created if missing)
            extension: File suffix of template files

        Returns:
            Non-empty TemplateRegistry

        Raises:
            OSError: If the directory cannot be created or listed
        """
        templates_dir = Path(templates_dir)
        if not templates_dir.exists():
            logger.info(f"Templates directory '{templates_dir}' does not exist, creating it...")
            templates_dir.mkdir(parents=True, exist_ok=True)

        templates: Dict[str, Template] = {}
        for path in sorted(templates_dir.iterdir()):
            if not path.is_file() or path.suffix != extension:
                continue
            try:
                templates[path.stem] = load_template_file(path)
            except TemplateLoadError as e:
                logger.error(e.message, extra=e.metadata)
                continue
            logger.debug(f"Loaded template '{path.stem}' from {path}")

        if not templates:
            logger.info("No templates found, creating a default template...")
            templates[DEFAULT_TEMPLATE_NAME] = compile_template(DEFAULT_TEMPLATE_NAME, DEFAULT_TEMPLATE_SOURCE)
            default_path = templates_dir / f"{DEFAULT_TEMPLATE_NAME}{extension}"
            try:
                default_path.write_text(DEFAULT_TEMPLATE_SOURCE, encoding="utf-8")
            except OSError as e:
                logger.warning(f"Failed to save default template to disk: {e}")

        return cls(templates)

    def lookup(self, name: str) -> Optional[Template]:
        """Get a template by name, or None if not registered"""
        return self._templates.get(name)

    def names(self) -> List[str]:
        """Registered template names, sorted"""
        return sorted(self._templates)

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)
