import pytest
from cognis_dashboard.models import Severity
from cognis_dashboard.severity import classify


@pytest.mark.parametrize(
    ("event_type", "expected"),
    [
        ("task_failed_retry", Severity.WARNING),
        ("payment_denied", Severity.WARNING),
        ("safety_incident", Severity.WARNING),
        ("tool_call_succeeded", Severity.SUCCESS),
        ("payment_authorized", Severity.SUCCESS),
        ("payment_captured", Severity.SUCCESS),
        ("heartbeat", Severity.NEUTRAL),
        ("", Severity.NEUTRAL),
    ],
)
def test_classify(event_type, expected):
    assert classify(event_type) is expected


def test_classify_is_case_insensitive():
    assert classify("TASK_FAILED") is Severity.WARNING
    assert classify("Tool_Call_Succeeded") is Severity.SUCCESS


def test_warning_takes_precedence_over_success():
    assert classify("capture_failed_after_captured") is Severity.WARNING
    assert classify("authorized_then_failed") is Severity.WARNING
