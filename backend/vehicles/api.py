from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.filters import OrderingFilter
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from bookings.availability import check_availability
from core.exceptions import BookingError
from core.permissions import HasRole
from users.models import ADMIN_ROLES, STAFF_ROLES

from . import services
from .filters import VehicleFilter
from .models import Vehicle
from .serializers import AvailabilityQuerySerializer, VehicleSerializer, VehicleStatusSerializer

PUBLIC_ACTIONS = {"list", "retrieve", "available", "availability"}


class VehiclePagination(PageNumberPagination):
    page_size = 20
    page_size_query_param = "page_size"
    max_page_size = 100


class VehicleViewSet(mixins.ListModelMixin, viewsets.GenericViewSet):
    """Public fleet browsing plus staff status changes and guarded deletion."""

    queryset = Vehicle.objects.filter(status=Vehicle.Status.AVAILABLE).select_related("location")
    serializer_class = VehicleSerializer
    pagination_class = VehiclePagination
    filter_backends = [DjangoFilterBackend, OrderingFilter]
    filterset_class = VehicleFilter
    ordering_fields = ["daily_rate", "year", "seats"]
    ordering = ["daily_rate", "id"]

    def get_permissions(self):
        if getattr(self, "action", None) in PUBLIC_ACTIONS:
            return [permissions.AllowAny()]
        if self.action == "destroy":
            return [HasRole.with_roles(ADMIN_ROLES)()]
        return [HasRole.with_roles(STAFF_ROLES)()]

    def retrieve(self, request, pk=None, *args, **kwargs):
        try:
            vehicle = services.find_vehicle(pk)
        except BookingError as exc:
            return Response(exc.as_payload(), status=exc.status_code)
        return Response(VehicleSerializer(vehicle).data)

    def destroy(self, request, pk=None, *args, **kwargs):
        try:
            services.delete_vehicle(pk)
        except BookingError as exc:
            return Response(exc.as_payload(), status=exc.status_code)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"], url_path="available")
    def available(self, request, *args, **kwargs):
        """AVAILABLE vehicles free for the whole [start_at, end_at) window."""
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data
        try:
            vehicles = services.find_available_in_range(
                data["start_at"], data["end_at"], location_id=data.get("location")
            )
        except BookingError as exc:
            return Response(exc.as_payload(), status=exc.status_code)
        return Response(VehicleSerializer(vehicles, many=True).data)

    @action(detail=True, methods=["get"], url_path="availability")
    def availability(self, request, pk=None, *args, **kwargs):
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        data = query.validated_data
        try:
            vehicle = services.find_vehicle(pk)
            location = (
                services.find_location(data["location"]) if data.get("location") else None
            )
        except BookingError as exc:
            return Response(exc.as_payload(), status=exc.status_code)
        result = check_availability(vehicle, data["start_at"], data["end_at"], location=location)
        payload = result.as_dict()
        payload["vehicle"] = vehicle.id
        return Response(payload)

    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None, *args, **kwargs):
        serializer = VehicleStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            vehicle = services.set_vehicle_status(pk, serializer.validated_data["status"])
        except BookingError as exc:
            return Response(exc.as_payload(), status=exc.status_code)
        return Response(VehicleSerializer(vehicle).data)
