"""URL routing for insights endpoints."""

from django.urls import path  # type: ignore

from .views import AnomaliesView, AvailabilityPredictionView, SuggestionsView, UsageReportView


urlpatterns = [
    path('availability/', AvailabilityPredictionView.as_view(), name='insights-availability'),
    path('suggestions/', SuggestionsView.as_view(), name='insights-suggestions'),
    path('anomalies/', AnomaliesView.as_view(), name='insights-anomalies'),
    path('usage-report/', UsageReportView.as_view(), name='insights-usage-report'),
]
