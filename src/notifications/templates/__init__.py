"""Template registry: process-wide access to the template store.

Overrides live in a single in-memory store; built-in wording lives in
``notifications.templates.defaults``.
"""

from notifications.templates.store import TemplateStore

_store: TemplateStore | None = None


def get_template_store() -> TemplateStore:
    """Return the configured template store (singleton)."""
    global _store
    if _store is None:
        _store = TemplateStore()
    return _store


def set_template_store(store: TemplateStore) -> None:
    """Replace the template store (useful for testing)."""
    global _store
    _store = store


def reset_template_store():
    """Reset the template store singleton (useful for testing)."""
    global _store
    _store = None
