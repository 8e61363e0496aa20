"""API views for the booking domain."""

from __future__ import annotations

from django.http import StreamingHttpResponse  # type: ignore
from django.utils import timezone  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.filters import OrderingFilter, SearchFilter  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.users.permissions import IsStaffMember, is_staff_member

from . import services
from .filters import BookingFilterSet
from .models import Booking
from .serializers import (
    AvailabilityQuerySerializer,
    BookingCreateSerializer,
    BookingDetailSerializer,
    BookingSerializer,
    BookingUpdateSerializer,
    CancelSerializer,
    CheckInSerializer,
    CheckOutSerializer,
    DamageReportSerializer,
    rates_from,
)

STAFF_ACTIONS = {
    "approve",
    "check_out",
    "check_in",
    "report_damage",
    "return_deposit",
    "overdue",
    "upcoming",
    "stats",
    "export",
}


class BookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Bookings and their lifecycle.

    Staff see every booking and drive approval, check-out and check-in.
    External users see their own bookings, create them and may cancel them.
    """

    queryset = Booking.objects.select_related("equipment", "user")
    permission_classes = [permissions.IsAuthenticated]
    filter_backends = [DjangoFilterBackend, SearchFilter, OrderingFilter]
    filterset_class = BookingFilterSet
    search_fields = ["purpose", "project", "equipment__name", "user__email"]
    ordering_fields = ["created_at", "start_date", "end_date", "total_cost"]

    def get_permissions(self):  # type: ignore
        if self.action in STAFF_ACTIONS:
            return [IsStaffMember()]
        return super().get_permissions()

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        user = self.request.user
        if is_staff_member(user):
            return qs
        return qs.filter(user=user)

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return BookingCreateSerializer
        if self.action in {"update", "partial_update"}:
            return BookingUpdateSerializer
        if self.action == "retrieve":
            return BookingDetailSerializer
        return BookingSerializer

    def _render(self, booking: Booking, status_code=status.HTTP_200_OK) -> Response:
        return Response(BookingSerializer(booking, context=self.get_serializer_context()).data, status=status_code)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user_id = request.user.pk
        rates = None
        if is_staff_member(request.user):
            user_id = data.get("user", user_id)
            rates = rates_from(data)

        booking = services.create_booking(
            data["equipment"],
            user_id,
            data["start_date"],
            data["end_date"],
            rates,
            purpose=data.get("purpose", ""),
            project=data.get("project", ""),
            location_note=data.get("location_note", ""),
            notes=data.get("notes", ""),
            deposit=data.get("deposit", 0),
        )
        return self._render(booking, status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):  # type: ignore
        booking = self.get_object()
        serializer = self.get_serializer(data=request.data, partial=kwargs.pop("partial", False))
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = services.update_booking(
            booking.pk,
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            rates=rates_from(data) if is_staff_member(request.user) else None,
            purpose=data.get("purpose"),
            project=data.get("project"),
            location_note=data.get("location_note"),
            notes=data.get("notes"),
        )
        return self._render(booking)

    def partial_update(self, request, *args, **kwargs):  # type: ignore
        kwargs["partial"] = True
        return self.update(request, *args, **kwargs)

    # --- lifecycle -------------------------------------------------------------
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        booking = services.approve(self.get_object().pk, request.user)
        return self._render(booking)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        """Owners cancel their own bookings, staff cancel any."""
        booking = self.get_object()
        serializer = CancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = services.cancel(booking.pk, request.user, serializer.validated_data["reason"])
        return self._render(booking)

    @action(detail=True, methods=["post"], url_path="check-out")
    def check_out(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = CheckOutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = services.check_out(
            booking.pk,
            request.user,
            serializer.validated_data.get("condition"),
            notes=serializer.validated_data["notes"],
        )
        return self._render(booking)

    @action(detail=True, methods=["post"], url_path="check-in")
    def check_in(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = CheckInSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = services.check_in(
            booking.pk,
            request.user,
            serializer.validated_data["condition"],
            notes=serializer.validated_data["notes"],
        )
        return self._render(booking)

    @action(detail=True, methods=["post"], url_path="report-damage")
    def report_damage(self, request, pk=None):  # type: ignore
        booking = self.get_object()
        serializer = DamageReportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        booking = services.report_damage(
            booking.pk,
            serializer.validated_data["description"],
            serializer.validated_data["repair_cost"],
        )
        return self._render(booking)

    @action(detail=True, methods=["post"], url_path="return-deposit")
    def return_deposit(self, request, pk=None):  # type: ignore
        booking = services.return_deposit(self.get_object().pk)
        return self._render(booking)

    # --- collection reads ----------------------------------------------------------
    @action(detail=False, methods=["get"])
    def mine(self, request):  # type: ignore
        qs = self.filter_queryset(Booking.objects.select_related("equipment", "user").filter(user=request.user))
        page = self.paginate_queryset(qs)
        serializer = BookingSerializer(page, many=True, context=self.get_serializer_context())
        return self.get_paginated_response(serializer.data)

    @action(detail=False, methods=["get"], url_path="check-availability")
    def check_availability(self, request):  # type: ignore
        query = AvailabilityQuerySerializer(data=request.query_params)
        query.is_valid(raise_exception=True)
        result = services.check_availability(
            query.validated_data["equipment"],
            query.validated_data["start_date"],
            query.validated_data["end_date"],
        )
        return Response(result)

    @action(detail=False, methods=["get"])
    def overdue(self, request):  # type: ignore
        page = self.paginate_queryset(services.list_overdue())
        serializer = BookingSerializer(page, many=True, context=self.get_serializer_context())
        return self.get_paginated_response(serializer.data)

    @action(detail=False, methods=["get"])
    def upcoming(self, request):  # type: ignore
        try:
            limit = min(int(request.query_params.get("limit", 10)), 100)
        except ValueError:
            limit = 10
        bookings = services.list_upcoming(limit=limit)
        return Response(BookingSerializer(bookings, many=True, context=self.get_serializer_context()).data)

    @action(detail=False, methods=["get"])
    def stats(self, request):  # type: ignore
        return Response(services.get_statistics())

    @action(detail=False, methods=["get"])
    def export(self, request):  # type: ignore
        rows = services.export_bookings_csv(self.filter_queryset(self.get_queryset()))
        response = StreamingHttpResponse(rows, content_type="text/csv")
        filename = f"bookings-{timezone.localdate():%Y%m%d}.csv"
        response["Content-Disposition"] = f'attachment; filename="{filename}"'
        return response
