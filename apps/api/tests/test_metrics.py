"""Tests for EMF metric log lines."""

from __future__ import annotations

import json
import logging

import pytest

from app.core import metrics
from app.core.config import settings


@pytest.fixture
def emf_lines(caplog, monkeypatch):
    monkeypatch.setattr(settings, "enable_metrics", True)
    monkeypatch.setattr(settings, "metrics_namespace", "Iglesias")
    caplog.set_level(logging.INFO, logger="app.core.metrics")

    def lines():
        return [json.loads(r.getMessage()) for r in caplog.records if r.name == "app.core.metrics"]

    return lines


class TestEMF:
    def test_business_metric(self, emf_lines):
        metrics.emit_business_metric("RemindersSent", 3, category="notifications", event_id=7)

        (entry,) = emf_lines()
        directive = entry["_aws"]["CloudWatchMetrics"][0]
        assert directive["Namespace"] == "Iglesias"
        assert directive["Dimensions"] == [["Category"]]
        assert directive["Metrics"] == [{"Name": "RemindersSent", "Unit": "Count"}]
        assert entry["RemindersSent"] == 3
        assert entry["Category"] == "notifications"
        assert entry["event_id"] == 7

    def test_error_metric_normalizes_path(self, emf_lines):
        metrics.emit_error("not_found", 404, "/api/v1/members/17", "GET")

        (entry,) = emf_lines()
        assert entry["Path"] == "/api/v1/members/{id}"
        assert entry["Severity"] == "client_error"
        assert entry["request_path"] == "/api/v1/members/17"

    def test_disabled(self, emf_lines, monkeypatch):
        monkeypatch.setattr(settings, "enable_metrics", False)
        metrics.emit_http_request("GET", "/api/v1/events", 200, 12.5)
        assert emf_lines() == []
