"""Courier status classification: free-form courier text → application status.

Rules are evaluated in priority order; the first rule with a keyword found
in the (lower-cased) status text wins. Operators extend a rule's keywords
through the ``courier_status_keywords`` setting, keyed by rule name.
"""

from dataclasses import dataclass

from ordering.order.order import AppStatus
from shared.config import Settings, get_settings

PREMISES_CLOSED_KEYWORDS = ("premises closed",)
PICKED_UP_KEYWORDS = ("booked", "picked up")


@dataclass(frozen=True)
class StatusRule:
    name: str
    keywords: tuple[str, ...]
    app_status: AppStatus

    def matches(self, status_text: str) -> bool:
        lowered = status_text.lower()
        return any(keyword in lowered for keyword in self.keywords)


DEFAULT_RULES: tuple[StatusRule, ...] = (
    StatusRule("delivered", ("delivered successfully",), AppStatus.DELIVERED),
    StatusRule("out_for_delivery", ("out for delivery",), AppStatus.OUT_FOR_DELIVERY),
    StatusRule(
        "address_issue",
        (
            "address information needed",
            "incomplete address",
            "address incomplete",
            "recipient premises closed",
            "no answer",
        ),
        AppStatus.ADDRESS_ISSUE,
    ),
)


def build_rules(settings: Settings | None = None) -> tuple[StatusRule, ...]:
    """Return the default rules with any configured extra keywords merged in."""
    extra = (settings or get_settings()).courier_status_keywords
    if not extra:
        return DEFAULT_RULES

    return tuple(
        StatusRule(
            rule.name,
            rule.keywords + tuple(keyword.lower() for keyword in extra.get(rule.name, ())),
            rule.app_status,
        )
        for rule in DEFAULT_RULES
    )


def classify(status_text: str, rules: tuple[StatusRule, ...] | None = None) -> AppStatus | None:
    """Map courier status text to an application status.

    Returns:
        The status of the first matching rule, or None when no rule matches.
    """
    for rule in rules if rules is not None else build_rules():
        if rule.matches(status_text):
            return rule.app_status
    return None


def mentions(status_text: str | None, keywords: tuple[str, ...]) -> bool:
    """True when any of ``keywords`` occurs in ``status_text`` (case-insensitive)."""
    if not status_text:
        return False
    lowered = status_text.lower()
    return any(keyword in lowered for keyword in keywords)
