import django_filters as filters
from django.db.models import Q

from .models import Vehicle


class VehicleFilter(filters.FilterSet):
    q = filters.CharFilter(method="filter_q")
    make = filters.CharFilter(field_name="make", lookup_expr="iexact")
    model = filters.CharFilter(field_name="model", lookup_expr="icontains")
    location = filters.NumberFilter(field_name="location_id")
    rate_min = filters.NumberFilter(field_name="daily_rate", lookup_expr="gte")
    rate_max = filters.NumberFilter(field_name="daily_rate", lookup_expr="lte")
    seats_min = filters.NumberFilter(field_name="seats", lookup_expr="gte")

    class Meta:
        model = Vehicle
        fields = ["make", "model", "location"]

    def filter_q(self, queryset, name, value):
        search = (value or "").strip()
        if not search:
            return queryset
        return queryset.filter(
            Q(make__icontains=search)
            | Q(model__icontains=search)
            | Q(license_plate__icontains=search)
        )
