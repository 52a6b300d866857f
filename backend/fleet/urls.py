from django.conf import settings
from django.contrib import admin
from django.urls import include, path

from core.health import healthz
from core.pricing import pricing_quote

urlpatterns = [
    path("api/healthz", healthz),
    path("api/pricing/quote/", pricing_quote, name="pricing_quote"),
    path("api/users/", include("users.urls")),
    path("api/vehicles/", include(("vehicles.urls", "vehicles"), namespace="vehicles")),
    path("api/bookings/", include(("bookings.urls", "bookings"), namespace="bookings")),
    path("api/payments/", include(("payments.urls", "payments"), namespace="payments")),
]

if settings.ENABLE_DJANGO_ADMIN:
    urlpatterns.insert(0, path("admin/", admin.site.urls))
