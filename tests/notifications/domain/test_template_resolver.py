"""Tests for template resolution and the template store."""

from notifications.notification.intent import MessageIntent
from notifications.templates import get_template_store
from notifications.templates.defaults import DEFAULT_TEMPLATES, TemplateDefinition
from notifications.templates.resolver import missing_template_text, resolve
from notifications.templates.store import unsupported_placeholders
from structlog.testing import capture_logs


class TestResolve:
    def test_every_intent_has_a_default(self):
        for intent in MessageIntent:
            assert not resolve(intent).is_missing

    def test_default_used_without_override(self):
        resolved = resolve(MessageIntent.DISPATCH_NOTIFICATION)
        assert resolved.template == DEFAULT_TEMPLATES["DispatchNotification"].template
        assert resolved.display_name == "Order Dispatch Notification"
        assert not resolved.is_custom

    def test_override_wins(self):
        overrides = {"DispatchNotification": TemplateDefinition(display_name="Shipped!", template="On its way")}
        resolved = resolve("DispatchNotification", overrides)
        assert resolved.template == "On its way"
        assert resolved.display_name == "Shipped!"
        assert resolved.is_custom

    def test_blank_override_falls_back_to_default(self):
        overrides = {"DispatchNotification": TemplateDefinition(display_name="Blank", template="   ")}
        resolved = resolve(MessageIntent.DISPATCH_NOTIFICATION, overrides)
        assert resolved.template == DEFAULT_TEMPLATES["DispatchNotification"].template
        assert not resolved.is_custom

    def test_missing_template_fails_closed(self):
        resolved = resolve("Birthday", defaults={})
        assert resolved.is_missing
        assert resolved.template == missing_template_text("Birthday")
        assert resolved.template == "Error: Template for Birthday not found."

    def test_override_without_default(self):
        overrides = {"Birthday": TemplateDefinition(display_name="Birthday", template="Happy birthday!")}
        assert resolve("Birthday", overrides, defaults={}).template == "Happy birthday!"


class TestTemplateStore:
    def test_set_override_keeps_default_metadata(self):
        store = get_template_store()
        definition = store.set_override("OutForDelivery", "Arriving today, {{customerName}}")

        assert definition.display_name == "Courier: Out for Delivery"
        assert definition.allowed_placeholders == DEFAULT_TEMPLATES["OutForDelivery"].allowed_placeholders
        assert resolve(MessageIntent.OUT_FOR_DELIVERY, store.overrides()).is_custom

    def test_clear_override(self):
        store = get_template_store()
        store.set_override("OutForDelivery", "Arriving today")
        store.clear_override("OutForDelivery")
        assert store.get("OutForDelivery") is None

    def test_overrides_snapshot_is_a_copy(self):
        store = get_template_store()
        snapshot = store.overrides()
        store.set_override("OutForDelivery", "Arriving today")
        assert snapshot == {}

    def test_unsupported_placeholder_logged(self):
        with capture_logs() as logs:
            get_template_store().set_override("CancellationNotice", "Cancelled {{trackingNumber}}")

        warnings = [log for log in logs if log["log_level"] == "warning"]
        assert warnings[0]["placeholders"] == ["{{trackingNumber}}"]


class TestUnsupportedPlaceholders:
    def test_all_allowed(self):
        assert unsupported_placeholders(DEFAULT_TEMPLATES["DispatchNotification"]) == []

    def test_reports_outside_tokens(self):
        definition = TemplateDefinition(
            display_name="x", template="{{orderId}} {{secret}}", allowed_placeholders=("{{orderId}}",)
        )
        assert unsupported_placeholders(definition) == ["{{secret}}"]

    def test_no_allowed_set_means_unrestricted(self):
        assert unsupported_placeholders(TemplateDefinition(display_name="x", template="{{anything}}")) == []
