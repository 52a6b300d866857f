from __future__ import annotations

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Staff or customer account; the role drives what the API lets it do."""

    class Role(models.TextChoices):
        ADMIN = "ADMIN", "Admin"
        SALES = "SALES", "Sales"
        CUSTOMER = "CUSTOMER", "Customer"
        DRIVER = "DRIVER", "Driver"

    role = models.CharField(
        max_length=16,
        choices=Role.choices,
        default=Role.CUSTOMER,
    )
    phone = models.CharField(
        max_length=32,
        blank=True,
        default="",
        help_text="Optional E.164 formatted phone number.",
    )

    @property
    def is_booking_staff(self) -> bool:
        return self.role in {self.Role.ADMIN, self.Role.SALES}


STAFF_ROLES = (User.Role.ADMIN, User.Role.SALES)
ADMIN_ROLES = (User.Role.ADMIN,)
