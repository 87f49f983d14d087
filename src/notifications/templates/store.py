"""Template store: operator overrides of the built-in templates.

The core only reads from the store; the settings workflow writes to it.
"""

import re
import threading

import structlog

from notifications.templates.defaults import DEFAULT_TEMPLATES, TemplateDefinition

logger = structlog.get_logger(__name__)

_TOKEN_PATTERN = re.compile(r"\{\{\s*\w+\s*\}\}")


class TemplateStore:
    """In-memory map from intent key to an overriding TemplateDefinition."""

    def __init__(self):
        self._overrides: dict[str, TemplateDefinition] = {}
        self._lock = threading.Lock()

    def overrides(self) -> dict[str, TemplateDefinition]:
        """Snapshot of the current overrides."""
        with self._lock:
            return dict(self._overrides)

    def get(self, key: str) -> TemplateDefinition | None:
        with self._lock:
            return self._overrides.get(key)

    def set_override(self, key: str, template: str, display_name: str | None = None) -> TemplateDefinition:
        """Override the wording for ``key``, keeping the default's metadata."""
        default = DEFAULT_TEMPLATES.get(key)
        definition = TemplateDefinition(
            display_name=display_name or (default.display_name if default else key),
            template=template,
            description=default.description if default else "",
            allowed_placeholders=default.allowed_placeholders if default else (),
        )

        unknown = unsupported_placeholders(definition)
        if unknown:
            logger.warning("Template uses unsupported placeholders", template_key=key, placeholders=unknown)

        with self._lock:
            self._overrides[key] = definition
        logger.info("Template override saved", template_key=key)
        return definition

    def clear_override(self, key: str) -> None:
        with self._lock:
            self._overrides.pop(key, None)

    def reset(self):
        """Drop every override (useful between tests)."""
        with self._lock:
            self._overrides.clear()


def unsupported_placeholders(definition: TemplateDefinition) -> list[str]:
    """Tokens used in the template that are outside its allowed placeholder set.

    Returns an empty list when the definition declares no allowed set.
    """
    if not definition.allowed_placeholders:
        return []
    allowed = {token.replace(" ", "") for token in definition.allowed_placeholders}
    used = [token.replace(" ", "") for token in _TOKEN_PATTERN.findall(definition.template)]
    return sorted({token for token in used if token not in allowed})
