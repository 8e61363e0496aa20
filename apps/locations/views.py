"""Location API views."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter, SearchFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsStaffMember, IsStaffMemberOrReadOnly

from . import services
from .filters import LocationFilterSet
from .models import Location
from .serializers import LocationSerializer


class LocationViewSet(viewsets.ModelViewSet):
    """Viewset for storage locations. Everyone reads, staff manage."""

    queryset = Location.objects.select_related("parent")
    serializer_class = LocationSerializer
    permission_classes = [IsStaffMemberOrReadOnly]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_class = LocationFilterSet
    search_fields = ["name", "description", "city"]
    ordering_fields = ["name", "kind", "created_at"]

    def perform_create(self, serializer):  # type: ignore
        serializer.save(created_by=self.request.user)

    @action(detail=False, methods=["get"], permission_classes=[IsStaffMember])
    def stats(self, request):  # type: ignore
        """Totals, active count and count per kind."""
        return Response(services.get_statistics())

    @action(detail=True, methods=["get"])
    def children(self, request, pk=None):  # type: ignore
        """Direct sub-locations of a location."""
        location = self.get_object()
        serializer = self.get_serializer(location.get_children(), many=True)
        return Response(serializer.data)

    @action(detail=True, methods=["post"], url_path="refresh-capacity", permission_classes=[IsStaffMember])
    def refresh_capacity(self, request, pk=None):  # type: ignore
        location = services.refresh_capacity_usage(self.get_object())
        return Response(self.get_serializer(location).data)
