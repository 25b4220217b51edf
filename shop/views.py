import logging

from rest_framework import serializers, status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import IsClient
from storefront.errors import BadRequest

from . import gateways, payments
from .models import Order

logger = logging.getLogger(__name__)


class OrderSummaryOut(serializers.ModelSerializer):
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    details = serializers.SerializerMethodField()

    class Meta:
        model = Order
        fields = ("id", "status", "total_amount", "created_at", "details")

    def get_details(self, order):
        return [
            {
                "product_id": str(detail.product_id),
                "name": detail.product.name,
                "quantity": detail.quantity,
                "unit_price": str(detail.unit_price),
            }
            for detail in order.details.all()
        ]


class PaymentCreateView(APIView):
    permission_classes = [IsClient]

    def post(self, request):
        result = payments.get_payment_service().create(request.user)
        payload = {
            "client_secret": result["client_secret"],
            "payment_intent_id": result["payment_intent_id"],
            "order_summary": OrderSummaryOut(result["order_summary"]).data,
        }
        return Response(payload, status=status.HTTP_201_CREATED)


class PaymentWebhookView(APIView):
    authentication_classes = []
    permission_classes = [AllowAny]

    def post(self, request):
        # Signature verification needs the body exactly as it was sent.
        raw_body = request.body
        if not raw_body:
            raise BadRequest("A raw body must be provided")
        signature = request.META.get("HTTP_STRIPE_SIGNATURE", "")

        event = gateways.get_payment_gateway().construct_event(raw_body, signature)
        logger.info("Received webhook event %s (%s)", event.get("id"), event["type"])
        payments.get_payment_service().reconcile(event)
        return Response({"received": True}, status=status.HTTP_200_OK)
