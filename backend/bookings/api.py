"""API viewsets for bookings."""

from __future__ import annotations

import logging

from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.pagination import LimitOffsetPagination
from rest_framework.response import Response

from core.exceptions import BookingError
from core.permissions import HasRole
from users.models import ADMIN_ROLES, STAFF_ROLES

from . import reports, services
from .serializers import (
    BookingCompleteSerializer,
    BookingCreateSerializer,
    BookingDecisionSerializer,
    BookingEventSerializer,
    BookingSerializer,
    BookingStatusUpdateSerializer,
)

logger = logging.getLogger(__name__)


def _error_response(exc: BookingError) -> Response:
    return Response(exc.as_payload(), status=exc.status_code)


class BookingPagination(LimitOffsetPagination):
    default_limit = 20
    max_limit = 100


class BookingViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Public booking submission plus the staff approval workflow."""

    serializer_class = BookingSerializer
    pagination_class = BookingPagination
    filter_backends = ()

    def get_permissions(self):
        if self.action == "create":
            return [permissions.AllowAny()]
        if self.action == "revenue":
            return [HasRole.with_roles(ADMIN_ROLES)()]
        return [HasRole.with_roles(STAFF_ROLES)()]

    def get_queryset(self):
        return services.list_bookings()

    def list(self, request, *args, **kwargs):
        """Bookings newest first, optionally filtered by ?status=."""
        try:
            queryset = services.list_bookings(request.query_params.get("status") or None)
        except BookingError as exc:
            return _error_response(exc)
        page = self.paginate_queryset(queryset)
        serializer = self.get_serializer(page, many=True)
        return self.get_paginated_response(serializer.data)

    def create(self, request, *args, **kwargs):
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = services.create_booking(**serializer.to_service_kwargs())
        except BookingError as exc:
            logger.info(
                "bookings: rejected booking submission: %s",
                exc.message,
                extra={
                    "code": exc.default_code,
                    "vehicle_id": serializer.validated_data["vehicle"],
                },
            )
            return _error_response(exc)
        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    def retrieve(self, request, pk=None, *args, **kwargs):
        try:
            booking = services.get_booking(pk)
        except BookingError as exc:
            return _error_response(exc)
        return Response(BookingSerializer(booking).data)

    @action(detail=False, methods=["get"], url_path="pending")
    def pending(self, request, *args, **kwargs):
        """Approval queue for staff."""
        serializer = BookingSerializer(services.pending_bookings(), many=True)
        return Response(serializer.data)

    @action(detail=False, methods=["get"], url_path="stats")
    def stats(self, request, *args, **kwargs):
        return Response(reports.booking_status_counts())

    @action(detail=False, methods=["get"], url_path="revenue")
    def revenue(self, request, *args, **kwargs):
        total = reports.total_revenue()
        return Response({"total_revenue": str(total)})

    @action(detail=True, methods=["get"], url_path="events")
    def events(self, request, pk=None, *args, **kwargs):
        """Audit trail of a booking."""
        try:
            booking = services.get_booking(pk)
        except BookingError as exc:
            return _error_response(exc)
        serializer = BookingEventSerializer(booking.events.all(), many=True)
        return Response(serializer.data)

    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None, *args, **kwargs):
        serializer = BookingDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = services.approve_booking(
                pk, request.user, notes=serializer.validated_data.get("notes") or None
            )
        except BookingError as exc:
            return _error_response(exc)
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["post"], url_path="reject")
    def reject(self, request, pk=None, *args, **kwargs):
        serializer = BookingDecisionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = services.reject_booking(
                pk, request.user, notes=serializer.validated_data.get("notes") or None
            )
        except BookingError as exc:
            return _error_response(exc)
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["post"], url_path="status")
    def update_status(self, request, pk=None, *args, **kwargs):
        serializer = BookingStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            booking = services.update_status(
                pk,
                data["status"],
                actor=request.user,
                notes=data.get("notes") or None,
            )
        except BookingError as exc:
            return _error_response(exc)
        return Response(BookingSerializer(booking).data)

    @action(detail=True, methods=["post"], url_path="complete")
    def complete(self, request, pk=None, *args, **kwargs):
        serializer = BookingCompleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            booking = services.complete_booking(
                pk,
                serializer.validated_data.get("actual_return_at"),
                actor=request.user,
            )
        except BookingError as exc:
            return _error_response(exc)
        return Response(BookingSerializer(booking).data)

