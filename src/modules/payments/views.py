"""Payment provider webhook endpoint.

Authenticated by HMAC signature rather than JWT.  Every verified event
is acknowledged with ``{"received": true}`` unless the body is
malformed; handler outcomes are logged, never retried here.
"""

from __future__ import annotations

import json

import structlog
from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from modules.orders.exceptions import OrderNotFound
from modules.orders.repositories.django_repository import OrderDjangoRepository
from modules.payments.exceptions import (
    InvalidSignature,
    MalformedEvent,
    WebhookNotConfigured,
)
from modules.payments.services import PaymentService
from modules.payments.signatures import SIGNATURE_HEADER, verify_signature

logger = structlog.get_logger(__name__)


class PaymentWebhookView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]
    throttle_classes = []

    def post(self, request: Request) -> Response:
        """POST /api/v1/payments/webhook/"""
        payload = request.body
        try:
            verify_signature(
                payload,
                request.headers.get(SIGNATURE_HEADER),
                settings.PAYMENT_WEBHOOK_SECRET,
            )
        except WebhookNotConfigured:
            logger.error("payment.webhook_not_configured")
            return Response(
                {"detail": "Webhook is not configured."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        except InvalidSignature as exc:
            logger.warning("payment.webhook_rejected", reason=str(exc))
            return Response(
                {"detail": "Invalid signature."}, status=status.HTTP_400_BAD_REQUEST
            )

        try:
            event = json.loads(payload)
            PaymentService(OrderDjangoRepository()).handle_event(event)
        except (json.JSONDecodeError, UnicodeDecodeError, MalformedEvent):
            logger.warning("payment.webhook_malformed")
            return Response(
                {"detail": "Malformed event."}, status=status.HTTP_400_BAD_REQUEST
            )
        except OrderNotFound as exc:
            logger.warning("payment.webhook_ignored", reason=str(exc))

        return Response({"received": True})
