"""Equipment API views."""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter, SearchFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsStaffMember, IsStaffMemberOrReadOnly

from . import services
from .filters import EquipmentFilterSet
from .models import Equipment
from .serializers import (
    EquipmentDetailSerializer,
    EquipmentSerializer,
    EquipmentStatusSerializer,
    MaintenanceCreateSerializer,
    MaintenanceRecordSerializer,
)


class EquipmentViewSet(viewsets.ModelViewSet):
    """Equipment catalogue. Authenticated users browse, staff manage."""

    queryset = Equipment.objects.select_related("location")
    permission_classes = [IsStaffMemberOrReadOnly]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_class = EquipmentFilterSet
    search_fields = ["name", "brand", "model", "serial_number", "description"]
    ordering_fields = ["created_at", "name", "daily_rate", "total_rentals"]

    def get_serializer_class(self):  # type: ignore
        if self.action == "retrieve":
            return EquipmentDetailSerializer
        return EquipmentSerializer

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        if self.action == "retrieve":
            qs = qs.prefetch_related("maintenance_records__performed_by")
        return qs

    def perform_create(self, serializer):  # type: ignore
        serializer.save(created_by=self.request.user, last_modified_by=self.request.user)

    def perform_update(self, serializer):  # type: ignore
        serializer.save(last_modified_by=self.request.user)

    @action(detail=False, methods=["get"], permission_classes=[IsStaffMember])
    def stats(self, request):  # type: ignore
        return Response(services.get_statistics())

    @action(detail=False, methods=["get"], url_path=r"by-qr/(?P<code>[^/]+)")
    def by_qr(self, request, code=None):  # type: ignore
        """Look up equipment from a scanned QR code."""
        equipment = services.find_by_qr(code)
        return Response(EquipmentDetailSerializer(equipment).data)

    @action(detail=True, methods=["get"])
    def qr(self, request, pk=None):  # type: ignore
        """Payload to encode on a printed QR label."""
        return Response(services.qr_payload(self.get_object()))

    @action(detail=True, methods=["patch"], url_path="status", permission_classes=[IsStaffMember])
    def set_status(self, request, pk=None):  # type: ignore
        equipment = self.get_object()
        serializer = EquipmentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.update_status(
            equipment,
            serializer.validated_data["status"],
            notes=serializer.validated_data.get("notes", ""),
            actor=request.user,
        )
        return Response(EquipmentSerializer(equipment).data)

    @action(detail=True, methods=["get", "post"], permission_classes=[IsStaffMember])
    def maintenance(self, request, pk=None):  # type: ignore
        equipment = self.get_object()
        if request.method == "GET":
            records = equipment.maintenance_records.select_related("performed_by")
            return Response(MaintenanceRecordSerializer(records, many=True).data)

        serializer = MaintenanceCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        record = services.add_maintenance_record(
            equipment,
            description=serializer.validated_data["description"],
            cost=serializer.validated_data.get("cost", 0),
            date=serializer.validated_data.get("date"),
            actor=request.user,
        )
        return Response(MaintenanceRecordSerializer(record).data, status=status.HTTP_201_CREATED)
