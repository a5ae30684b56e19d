import json
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import httpx

from agri_assist.agent.tools import (
    MARKET_PRICE_TOOL,
    SCHEME_INFO_TOOL,
    build_tools,
    list_tool_specs,
)
from agri_assist.application.services.market_data_service import lookup_market_price
from agri_assist.application.services.scheme_search_service import lookup_scheme_info
from agri_assist.infra.config import AppConfig
from agri_assist.infra.tool_provider import invoke_intranet_tool
from agri_assist.schemas import ToolInvocation


def _config(**overrides) -> AppConfig:
    values = {"llm_provider": "mock"}
    values.update(overrides)
    return AppConfig(_env_file=None, **values)


class MockProviderTests(unittest.TestCase):
    def test_simulated_price_is_stable_and_in_range(self) -> None:
        cfg = _config()
        first = lookup_market_price("Tomato", "Karnataka", config=cfg)
        second = lookup_market_price("tomato ", "karnataka", config=cfg)
        self.assertTrue(first.found)
        self.assertEqual(first.price, second.price)
        self.assertGreaterEqual(first.price, 2000)
        self.assertLessEqual(first.price, 7000)
        self.assertEqual(first.unit, "quintal")

    def test_missing_crop_is_a_sentinel_not_an_error(self) -> None:
        result = lookup_market_price("", "Karnataka", config=_config())
        self.assertFalse(result.found)
        self.assertIsNone(result.price)

    def test_known_scheme_keywords(self) -> None:
        cfg = _config()
        for query, marker in [
            ("How do I get PM-KISAN money?", "PM-KISAN"),
            ("what does nabard do", "NABARD"),
            ("fasal bima claim", "PMFBY"),
            ("kisan credit card interest", "Kisan Credit Card"),
        ]:
            with self.subTest(query=query):
                result = lookup_scheme_info(query, config=cfg)
                self.assertTrue(result.found)
                self.assertIn(marker, result.summary)

    def test_unknown_scheme_returns_sentinel_text(self) -> None:
        result = lookup_scheme_info("moon farming grant", config=_config())
        self.assertFalse(result.found)
        self.assertTrue(
            result.summary.startswith('No specific information found for "moon farming grant"')
        )


class IntranetProviderTests(unittest.TestCase):
    def test_success_payload_is_unwrapped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            self.assertEqual(request.headers["Authorization"], "Bearer secret")
            self.assertEqual(json.loads(request.content), {"crop": "Onion", "location": "Nashik"})
            return httpx.Response(200, json={"message": "ok", "data": {"price": 2450, "unit": "quintal"}})

        result = invoke_intranet_tool(
            "market_price_lookup",
            {"crop": "Onion", "location": "Nashik"},
            "http://intranet.local/price",
            "secret",
            transport=httpx.MockTransport(handler),
        )
        self.assertEqual(result.data["price"], 2450)

    def test_http_failure_returns_empty_data(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(503))
        result = invoke_intranet_tool(
            "scheme_info_lookup", {"query": "x"}, "http://intranet.local/s", None, transport=transport
        )
        self.assertEqual(result.data, {})
        self.assertIn("failed", result.message)

    def test_unconfigured_url(self) -> None:
        result = invoke_intranet_tool("market_price_lookup", {}, None, None)
        self.assertEqual(result.data, {})

    def test_adapters_fall_back_to_sentinel(self) -> None:
        cfg = _config(
            market_data_provider="intranet",
            market_data_api_url="http://intranet.local/price",
            scheme_search_provider="intranet",
            scheme_search_api_url="http://intranet.local/scheme",
        )
        empty = ToolInvocation(name="x", message="intranet request failed: boom", data={})
        with patch(
            "agri_assist.application.services.market_data_service.invoke_intranet_tool",
            return_value=empty,
        ):
            price = lookup_market_price("Onion", "Nashik", config=cfg)
        with patch(
            "agri_assist.application.services.scheme_search_service.invoke_intranet_tool",
            return_value=empty,
        ):
            scheme = lookup_scheme_info("PM-KISAN", config=cfg)
        self.assertFalse(price.found)
        self.assertIn("boom", price.message)
        self.assertFalse(scheme.found)

    def test_adapters_use_intranet_data(self) -> None:
        cfg = _config(market_data_provider="intranet", market_data_api_url="http://intranet.local/p")
        payload = ToolInvocation(name="market_price_lookup", message="ok", data={"price": "3100.5"})
        with patch(
            "agri_assist.application.services.market_data_service.invoke_intranet_tool",
            return_value=payload,
        ):
            result = lookup_market_price("Onion", "Nashik", config=cfg)
        self.assertTrue(result.found)
        self.assertEqual(result.price, 3100.5)
        self.assertEqual(result.source, "intranet")


class ToolRegistryTests(unittest.TestCase):
    def test_lookups_are_registered(self) -> None:
        names = {spec["name"] for spec in list_tool_specs()}
        self.assertTrue({MARKET_PRICE_TOOL, SCHEME_INFO_TOOL} <= names)

    def test_bound_tool_returns_wire_payload(self) -> None:
        (tool,) = build_tools(_config(), [SCHEME_INFO_TOOL])
        output = tool.invoke({"query": "soil health card"})
        self.assertTrue(output["found"])
        self.assertEqual(output["source"], "mock")

    def test_unknown_tool_name(self) -> None:
        with self.assertRaises(KeyError):
            build_tools(_config(), ["weather_lookup"])


if __name__ == "__main__":
    unittest.main()
