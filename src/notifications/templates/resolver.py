"""Template resolver: pick the wording for an intent.

A non-blank operator override wins over the built-in default. When neither
exists the resolver fails closed: it returns an inline error string and flags
the result as missing, so no exception ever escapes to the caller.
"""

from collections.abc import Mapping
from dataclasses import dataclass

import structlog

from notifications.notification.intent import MessageIntent
from notifications.templates.defaults import DEFAULT_TEMPLATES, TemplateDefinition

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ResolvedTemplate:
    key: str
    template: str
    display_name: str
    is_missing: bool = False
    is_custom: bool = False


def missing_template_text(key: str) -> str:
    return f"Error: Template for {key} not found."


def resolve(
    intent_key: MessageIntent | str,
    custom_overrides: Mapping[str, TemplateDefinition] | None = None,
    defaults: Mapping[str, TemplateDefinition] | None = None,
) -> ResolvedTemplate:
    """Resolve the template for ``intent_key``.

    Returns:
        ResolvedTemplate whose ``is_missing`` is True when no template exists.
    """
    key = intent_key.value if isinstance(intent_key, MessageIntent) else intent_key
    custom_overrides = custom_overrides or {}
    defaults = DEFAULT_TEMPLATES if defaults is None else defaults

    custom = custom_overrides.get(key)
    if custom is not None and custom.template.strip():
        return ResolvedTemplate(key=key, template=custom.template, display_name=custom.display_name, is_custom=True)

    default = defaults.get(key)
    if default is not None:
        return ResolvedTemplate(key=key, template=default.template, display_name=default.display_name)

    logger.warning("No template found for message intent", template_key=key)
    return ResolvedTemplate(key=key, template=missing_template_text(key), display_name=key, is_missing=True)
