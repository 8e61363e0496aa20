"""API views for rental insights."""

from __future__ import annotations

from rest_framework.permissions import IsAuthenticated  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.permissions import IsStaffMember, is_staff_member

from .engine import InsightsEngine
from .serializers import AvailabilityQuerySerializer, SuggestionsQuerySerializer, UsageReportQuerySerializer


class InsightsView(APIView):
    engine = InsightsEngine()

    def query(self, serializer_class):  # type: ignore
        serializer = serializer_class(data=self.request.query_params)
        serializer.is_valid(raise_exception=True)
        return serializer.validated_data


class AvailabilityPredictionView(InsightsView):
    """Estimated availability of one item for a date range."""

    permission_classes = [IsAuthenticated]

    def get(self, request, format=None):  # type: ignore
        params = self.query(AvailabilityQuerySerializer)
        return Response(
            self.engine.predict_availability(params["equipment"], params["start_date"], params["end_date"])
        )


class SuggestionsView(InsightsView):
    """Items often rented together with the given one."""

    permission_classes = [IsAuthenticated]

    def get(self, request, format=None):  # type: ignore
        params = self.query(SuggestionsQuerySerializer)
        user_id = request.user.pk
        if "user" in params and is_staff_member(request.user):
            user_id = params["user"]
        return Response(self.engine.smart_suggestions(params["equipment"], user_id))


class AnomaliesView(InsightsView):
    permission_classes = [IsStaffMember]

    def get(self, request, format=None):  # type: ignore
        return Response({"anomalies": self.engine.detect_anomalies()})


class UsageReportView(InsightsView):
    permission_classes = [IsStaffMember]

    def get(self, request, format=None):  # type: ignore
        params = self.query(UsageReportQuerySerializer)
        return Response(self.engine.usage_report(params["start_date"], params["end_date"]))
