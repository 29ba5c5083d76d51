"""
Tests for trace context propagation into logs.
"""

from unittest.mock import Mock, patch

from echomind.observability import add_trace_context, get_trace_context


def recording_span(trace_id, span_id):
    span = Mock()
    span.is_recording.return_value = True
    span.get_span_context.return_value = Mock(trace_id=trace_id, span_id=span_id)
    return span


class TestTraceContext:
    """Test cases for trace context helpers."""

    def test_no_active_span(self):
        assert get_trace_context() == {}

    def test_formats_ids_as_hex(self):
        with patch("echomind.observability.trace.get_current_span", return_value=recording_span(255, 16)):
            context = get_trace_context()

        assert context == {"trace_id": f"{255:032x}", "span_id": f"{16:016x}"}

    def test_processor_adds_ids_to_log_event(self):
        with patch("echomind.observability.trace.get_current_span", return_value=recording_span(1, 2)):
            event = add_trace_context(None, "info", {"event": "Request started"})

        assert event["event"] == "Request started"
        assert event["trace_id"] == f"{1:032x}"
        assert event["span_id"] == f"{2:016x}"

    def test_processor_leaves_event_alone_without_span(self):
        event = add_trace_context(None, "info", {"event": "Request started"})

        assert event == {"event": "Request started"}
