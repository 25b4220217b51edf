"""
Thin handles over the payment processor and the image host.

Each handle is built once from settings by the ``get_*`` factories and then
shared; services receive it as a constructor argument.
"""
import logging
import time
from dataclasses import dataclass
from functools import lru_cache

import cloudinary.utils
import stripe
from django.conf import settings

from storefront.errors import BadRequest, PaymentGatewayError, Unauthorized

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CreatedPaymentIntent:
    id: str
    client_secret: str


@dataclass(frozen=True)
class SignedUploadPayload:
    upload_url: str
    api_key: str
    timestamp: str
    signature: str


class StripeGateway:
    def __init__(self, api_key, webhook_secret):
        self.api_key = api_key
        self.webhook_secret = webhook_secret

    def create_payment_intent(self, amount, currency, metadata):
        logger.info("Creating a %s %s payment intent for order %s", amount, currency, metadata.get("order_id"))
        try:
            intent = stripe.PaymentIntent.create(
                amount=amount,
                currency=currency,
                metadata=metadata,
                api_key=self.api_key,
            )
        except stripe.StripeError as exc:
            raise PaymentGatewayError(description=getattr(exc, "user_message", None)) from exc
        return CreatedPaymentIntent(id=intent.id, client_secret=intent.client_secret)

    def construct_event(self, payload, signature):
        """Verify a webhook delivery and return the event it carries."""
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except ValueError as exc:
            raise BadRequest("Invalid webhook payload") from exc
        except stripe.SignatureVerificationError as exc:
            raise Unauthorized("Invalid webhook signature") from exc
        # Reconciliation reads events as plain dicts.
        return event.to_dict()


class CloudinaryUploads:
    upload_url_template = "https://api.cloudinary.com/v1_1/{cloud_name}/image/upload"

    def __init__(self, cloud_name, api_key, api_secret):
        self.cloud_name = cloud_name
        self.api_key = api_key
        self.api_secret = api_secret

    def signed_upload_payload(self, timestamp=None):
        timestamp = int(timestamp if timestamp is not None else time.time())
        signature = cloudinary.utils.api_sign_request({"timestamp": timestamp}, self.api_secret)
        return SignedUploadPayload(
            upload_url=self.upload_url_template.format(cloud_name=self.cloud_name),
            api_key=self.api_key,
            timestamp=str(timestamp),
            signature=signature,
        )


@lru_cache(maxsize=None)
def get_payment_gateway():
    return StripeGateway(settings.STRIPE_API_KEY, settings.STRIPE_WEBHOOK_SECRET)


@lru_cache(maxsize=None)
def get_upload_signer():
    return CloudinaryUploads(
        settings.CLOUDINARY_CLOUD_NAME,
        settings.CLOUDINARY_API_KEY,
        settings.CLOUDINARY_API_SECRET,
    )
