from __future__ import annotations

from django.core.validators import MinValueValidator
from django.db import models


class Location(models.Model):
    """Branch where vehicles are picked up and returned."""

    name = models.CharField(max_length=140)
    address = models.CharField(max_length=255, blank=True, default="")
    city = models.CharField(max_length=80, blank=True, default="")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return f"{self.name} ({self.city})" if self.city else self.name


class Vehicle(models.Model):
    """A rentable vehicle; status is changed by staff, never by bookings."""

    class Status(models.TextChoices):
        AVAILABLE = "AVAILABLE", "Available"
        RENTED = "RENTED", "Rented"
        MAINTENANCE = "MAINTENANCE", "Maintenance"
        DAMAGED = "DAMAGED", "Damaged"
        RESERVED = "RESERVED", "Reserved"

    make = models.CharField(max_length=60)
    model = models.CharField(max_length=60)
    year = models.PositiveIntegerField()
    license_plate = models.CharField(max_length=20, unique=True)
    vin = models.CharField(max_length=32, unique=True)
    color = models.CharField(max_length=30, blank=True, default="")
    seats = models.PositiveSmallIntegerField(default=5)
    daily_rate = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    location = models.ForeignKey(
        Location,
        related_name="vehicles",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
    )
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.AVAILABLE,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["make", "model", "id"]
        indexes = [
            models.Index(fields=["status"]),
            models.Index(fields=["make", "model"]),
        ]

    def __str__(self) -> str:
        return f"{self.year} {self.make} {self.model} ({self.license_plate})"

    def is_bookable(self) -> bool:
        return self.status == self.Status.AVAILABLE
