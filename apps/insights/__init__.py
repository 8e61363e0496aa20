"""Insights app package.

Heuristic availability predictions, equipment suggestions, anomaly
detection and usage reports computed from booking history. The tuning
tables are passed in as a read-only ``PredictionConfig``.
"""
