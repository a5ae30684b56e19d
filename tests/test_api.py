import os
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import httpx
from fastapi.testclient import TestClient

from agri_assist.agent.runner import FlowRunner
from agri_assist.api import server
from agri_assist.domain.audio import encode_wav, to_data_uri
from agri_assist.domain.errors import FlowTimeoutError, GenerationError
from agri_assist.infra.agent_client import DomainAgentClient
from agri_assist.infra.config import AppConfig, get_config
from agri_assist.infra.model_client import MockModelClient
from agri_assist.prompts.flow_prompts import TRANSCRIPTION_RETRY_MESSAGE

SILENT_WAV_URI = to_data_uri(encode_wav(bytes(4800)))


class _FailingClient(MockModelClient):
    def generate_structured(self, request):
        raise GenerationError("model unavailable")


class FlowApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self._env_backup = {"LLM_PROVIDER": os.environ.get("LLM_PROVIDER")}
        os.environ["LLM_PROVIDER"] = "mock"
        get_config.cache_clear()
        self.cfg = AppConfig(_env_file=None, llm_provider="mock")
        self.runner = FlowRunner(self.cfg)
        server.app.dependency_overrides[server.get_runner] = lambda: self.runner
        self.client = TestClient(server.app)

    def tearDown(self) -> None:
        server.app.dependency_overrides.clear()
        self.runner.shutdown()
        for key, value in self._env_backup.items():
            if value is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = value
        get_config.cache_clear()

    def _use_runner(self, runner: FlowRunner) -> None:
        self.runner.shutdown()
        self.runner = runner
        server.app.dependency_overrides[server.get_runner] = lambda: runner

    def test_health_reports_modes(self) -> None:
        body = self.client.get("/health").json()
        self.assertEqual(body["status"], "ok")
        self.assertEqual(body["llm"], "mock")
        self.assertEqual(body["marketForecastMode"], "tools")

    def test_flows_are_listed(self) -> None:
        flows = {item["name"]: item for item in self.client.get("/api/v1/flows").json()}
        self.assertEqual(len(flows), 6)
        self.assertFalse(flows["advisory_calendar"]["synthesizesSpeech"])
        self.assertEqual(flows["market_forecast"]["mode"], "tools")

    def test_market_forecast_returns_answer_and_audio(self) -> None:
        response = self.client.post(
            "/api/v1/flows/market-forecast",
            json={"crop": "Tomato", "location": "Karnataka", "language": "Hindi"},
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["flow"], "market_forecast")
        self.assertEqual(set(body["structuredAnswer"]), {"forecast", "suggestion"})
        self.assertTrue(body["audioOutput"].startswith("data:audio/wav;base64,"))
        self.assertIn("synthesized", body["trace"])

    def test_missing_field_is_422_with_field_names(self) -> None:
        response = self.client.post(
            "/api/v1/flows/market-forecast", json={"crop": "Tomato", "language": "Hindi"}
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["missingFields"], ["location"])

    def test_generic_dispatch_by_flow_tag(self) -> None:
        response = self.client.post(
            "/api/v1/flows",
            json={
                "flow": "advisory_calendar",
                "crop": "Ragi",
                "location": "Kolar",
                "sowingDate": "2025-06-12",
                "language": "Kannada",
            },
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertIsNone(body["audioOutput"])
        self.assertEqual(body["structuredAnswer"]["schedule"][0]["category"], "Preparation")

    def test_unknown_flow_tag_is_422(self) -> None:
        response = self.client.post("/api/v1/flows", json={"flow": "weather"})
        self.assertEqual(response.status_code, 422)

    def test_unknown_route_slug_is_404(self) -> None:
        response = self.client.post("/api/v1/flows/weather", json={})
        self.assertEqual(response.status_code, 404)

    def test_voice_with_silent_audio(self) -> None:
        response = self.client.post("/api/v1/flows/voice", json={"audioDataUri": SILENT_WAV_URI})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["transcribedText"], "")
        self.assertTrue(body["audioOutput"])

    def test_transcribe_endpoint(self) -> None:
        response = self.client.post(
            "/api/v1/transcribe", json={"audioDataUri": SILENT_WAV_URI, "language": "Hindi"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["structuredAnswer"], {"transcribedText": ""})

        strict = self.client.post(
            "/api/v1/transcribe",
            json={"audioDataUri": SILENT_WAV_URI, "language": "Hindi", "strict": True},
        )
        self.assertEqual(strict.status_code, 422)
        self.assertEqual(strict.json()["detail"], TRANSCRIPTION_RETRY_MESSAGE)

    def test_generation_failure_is_502(self) -> None:
        self._use_runner(FlowRunner(self.cfg, model_client=_FailingClient(self.cfg)))
        response = self.client.post(
            "/api/v1/flows/scheme-navigation", json={"query": "PM-KISAN", "language": "Hindi"}
        )
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["error"], "generation_failed")

    def test_agent_failure_is_502(self) -> None:
        cfg = AppConfig(
            _env_file=None,
            llm_provider="mock",
            scheme_navigation_mode="agent",
            agent_base_url="http://agents.local",
        )
        agent = DomainAgentClient(
            cfg, transport=httpx.MockTransport(lambda request: httpx.Response(502))
        )
        self._use_runner(FlowRunner(cfg, agent_client=agent))
        response = self.client.post(
            "/api/v1/flows/scheme-navigation", json={"query": "PM-KISAN", "language": "Hindi"}
        )
        self.assertEqual(response.status_code, 502)
        self.assertEqual(response.json()["error"], "external_agent_failed")

    def test_timeout_is_504(self) -> None:
        with patch.object(
            self.runner, "run_with_timeout", side_effect=FlowTimeoutError("too slow")
        ):
            response = self.client.post(
                "/api/v1/flows/scheme-navigation", json={"query": "PM-KISAN", "language": "Hindi"}
            )
        self.assertEqual(response.status_code, 504)

    def test_unexpected_error_is_500_and_logged(self) -> None:
        client = TestClient(server.app, raise_server_exceptions=False)
        with patch.object(
            self.runner, "run_with_timeout", side_effect=RuntimeError("boom")
        ), patch.object(server, "_append_error_log") as append:
            response = client.post(
                "/api/v1/flows/scheme-navigation", json={"query": "PM-KISAN", "language": "Hindi"}
            )
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json()["error"], "internal_error")
        append.assert_called_once()


if __name__ == "__main__":
    unittest.main()
