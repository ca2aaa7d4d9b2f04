from probook.monitoring.prometheus_metrics import REGISTRY, prometheus_metrics


def _value(name, labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_forced_transitions_are_labelled():
    labels = {"from_status": "COMPLETED", "to_status": "PENDING", "forced": "true"}
    before = _value("probook_booking_transitions_total", labels)

    prometheus_metrics.record_booking_transition("COMPLETED", "PENDING", forced=True)

    assert _value("probook_booking_transitions_total", labels) == before + 1


def test_side_effect_failures_by_step():
    before = _value("probook_side_effect_failures_total", {"step": "capture"})

    prometheus_metrics.record_side_effect_failure("capture")

    assert _value("probook_side_effect_failures_total", {"step": "capture"}) == before + 1


def test_exposition_contains_domain_metrics():
    prometheus_metrics.record_notification_delivery("EMAIL", "SENT", 0.01)

    body = prometheus_metrics.get_metrics().decode()

    assert "probook_notification_deliveries_total" in body
    assert prometheus_metrics.get_content_type().startswith("text/plain")
