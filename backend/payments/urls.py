from django.urls import path

from . import api
from .stripe_api import stripe_webhook

app_name = "payments"

urlpatterns = [
    path("create-intent/", api.create_intent, name="create_intent"),
    path("stripe/webhook/", stripe_webhook, name="stripe_webhook"),
    path("booking/<int:booking_id>/", api.payment_for_booking, name="payment_for_booking"),
    path("refund/<int:booking_id>/", api.refund, name="refund"),
    path("<int:payment_id>/", api.payment_detail, name="payment_detail"),
]
