import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import httpx

from agri_assist.domain.errors import ExternalAgentError
from agri_assist.infra.agent_client import DomainAgentClient
from agri_assist.infra.config import AppConfig


def _client(handler) -> DomainAgentClient:
    cfg = AppConfig(_env_file=None, agent_base_url="http://agents.local/")
    return DomainAgentClient(cfg, transport=httpx.MockTransport(handler))


class DomainAgentClientTests(unittest.TestCase):
    def test_market_price_sends_crop_and_state(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, text="Forecast: up. Suggestion: hold")

        text = _client(handler).market_price("Tomato", "Karnataka")
        self.assertEqual(text, "Forecast: up. Suggestion: hold")
        self.assertEqual(seen["path"], "/market-price")
        self.assertEqual(seen["params"], {"crop": "Tomato", "state": "Karnataka"})

    def test_info_query_passes_language(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            self.assertEqual(request.url.path, "/info-query")
            self.assertEqual(request.url.params["language"], "Hindi")
            return httpx.Response(200, text="PM-KISAN pays Rs. 6,000 a year.")

        self.assertIn("PM-KISAN", _client(handler).info_query("pm kisan", "Hindi"))

    def test_non_2xx_raises(self) -> None:
        client = _client(lambda request: httpx.Response(503, text="overloaded"))
        with self.assertRaises(ExternalAgentError) as ctx:
            client.market_price("Tomato", "Karnataka")
        self.assertEqual(ctx.exception.status_code, 503)

    def test_transport_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with self.assertRaises(ExternalAgentError):
            _client(handler).info_query("pm kisan")

    def test_empty_body_raises(self) -> None:
        with self.assertRaises(ExternalAgentError):
            _client(lambda request: httpx.Response(200, text="  ")).info_query("pm kisan")


if __name__ == "__main__":
    unittest.main()
