from django.urls import path

from . import views

urlpatterns = [
    path("payments", views.PaymentCreateView.as_view(), name="payments-create"),
    path("payment-webhook", views.PaymentWebhookView.as_view(), name="payment-webhook"),
]
