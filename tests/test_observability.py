import json
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agri_assist.observability.logging_utils import (
    get_trace_id,
    log_event,
    log_warning,
    request_trace,
    summarize_text,
)
from agri_assist.observability.otel import build_span_attributes, summarize_pipeline_state
from agri_assist.schemas import SchemeAnswer


class LoggingTests(unittest.TestCase):
    def test_events_carry_the_request_trace_id(self) -> None:
        with request_trace("abc123") as trace_id:
            self.assertEqual(get_trace_id(), "abc123")
            with self.assertLogs("agri_assist.events", level="INFO") as captured:
                log_event("flow_start", flow="scheme_navigation", query="ಯೋಜನೆ")
                log_warning("synthesis_failed", error="quota")
        self.assertEqual(trace_id, "abc123")
        self.assertEqual(get_trace_id(), "unknown")
        first = json.loads(captured.records[0].getMessage())
        self.assertEqual(first["event"], "flow_start")
        self.assertEqual(first["trace_id"], "abc123")
        self.assertEqual(first["query"], "ಯೋಜನೆ")
        self.assertEqual(captured.records[1].levelname, "WARNING")

    def test_generated_trace_ids_are_unique(self) -> None:
        with request_trace() as first:
            pass
        with request_trace() as second:
            pass
        self.assertNotEqual(first, second)
        self.assertEqual(len(first), 16)

    def test_summarize_text(self) -> None:
        self.assertEqual(summarize_text("short"), "short")
        self.assertEqual(summarize_text("x" * 10, limit=4), "xxxx...")
        self.assertEqual(summarize_text(""), "")


class SpanAttributeTests(unittest.TestCase):
    def test_long_payloads_are_truncated(self) -> None:
        attrs = build_span_attributes("node.input", {"text": "y" * 50}, limit=10)
        self.assertTrue(attrs["node.input.truncated"])
        self.assertEqual(len(attrs["node.input"]), 13)
        self.assertGreater(attrs["node.input.size"], 50)

    def test_pipeline_state_summary_hides_audio(self) -> None:
        summary = summarize_pipeline_state(
            {
                "flow": "scheme_navigation",
                "answer": SchemeAnswer(answer="PM-KISAN"),
                "pcm": b"\x00" * 100,
                "trace": ["validated"],
            }
        )
        self.assertEqual(summary["pcm_bytes"], 100)
        self.assertNotIn("pcm", summary)
        self.assertEqual(summary["answer"], {"answer": "PM-KISAN"})
        self.assertFalse(summary["has_audio"])


if __name__ == "__main__":
    unittest.main()
