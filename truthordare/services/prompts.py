"""Prompt template loading.

Templates are plain ``*.txt`` files shipped in ``truthordare/prompts``.
Placeholders use the ``{{KEY}}`` form and are replaced verbatim; unknown
placeholders are left in place.
"""

from pathlib import Path
from typing import Dict, List, Optional, Protocol

import structlog

from truthordare.utils.exceptions import PromptTemplateError

logger = structlog.get_logger()

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "prompts"


class PromptSource(Protocol):
    def load(self, name: str) -> str: ...

    def load_and_replace(self, name: str, **placeholders: object) -> str: ...


def replace_placeholders(template: str, **placeholders: object) -> str:
    result = template
    for key, value in placeholders.items():
        result = result.replace("{{" + key + "}}", str(value))
    return result


class PromptLoader:
    """Loads and caches prompt templates by name (file stem)."""

    def __init__(self, templates_dir: Optional[Path] = None):
        self.templates_dir = Path(templates_dir or DEFAULT_TEMPLATES_DIR)
        self._cache: Dict[str, str] = {}

    def load(self, name: str) -> str:
        """Return the raw template with placeholders intact.

        Raises:
            PromptTemplateError: If the template does not exist or cannot be read
        """
        if name in self._cache:
            return self._cache[name]

        path = self.templates_dir / f"{name}.txt"
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            raise PromptTemplateError(f"failed to load prompt '{name}': {e}")

        self._cache[name] = content
        logger.debug("prompt_loaded", name=name, length=len(content))
        return content

    def load_and_replace(self, name: str, **placeholders: object) -> str:
        return replace_placeholders(self.load(name), **placeholders)

    def list_available(self) -> List[str]:
        if not self.templates_dir.is_dir():
            return []
        return sorted(p.stem for p in self.templates_dir.glob("*.txt"))

    def clear_cache(self) -> None:
        self._cache.clear()
