"""Payment webhook exceptions."""


class WebhookNotConfigured(Exception):
    """``PAYMENT_WEBHOOK_SECRET`` is empty."""


class InvalidSignature(Exception):
    """The webhook signature header is missing or does not match."""


class MalformedEvent(ValueError):
    """The webhook body is not a JSON event object."""
