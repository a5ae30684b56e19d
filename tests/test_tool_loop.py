import json
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from langchain_core.messages import AIMessage, HumanMessage, ToolMessage

from agri_assist.agent.tool_loop import run_structured_generation
from agri_assist.agent.tools import MARKET_PRICE_TOOL, build_tools
from agri_assist.domain.errors import GenerationError
from agri_assist.infra.config import AppConfig
from agri_assist.schemas import CropDiagnosisAnswer, MarketForecastAnswer


def _config() -> AppConfig:
    return AppConfig(_env_file=None, llm_provider="mock", market_data_provider="mock")


class _ScriptedLLM:
    """Replays canned replies; records what it was bound to and shown."""

    def __init__(self, replies):
        self._replies = list(replies)
        self.calls = 0
        self.bound = None
        self.tool_choice = None
        self.seen = []

    def bind_tools(self, tools, tool_choice=None):
        self.bound = list(tools)
        self.tool_choice = tool_choice
        return self

    def invoke(self, messages):
        self.seen.append(list(messages))
        reply = self._replies[min(self.calls, len(self._replies) - 1)]
        self.calls += 1
        return reply


def _tool_call(name, args, call_id="call_1"):
    return AIMessage(content="", tool_calls=[{"name": name, "args": args, "id": call_id}])


class ToolLoopTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tools = build_tools(_config(), [MARKET_PRICE_TOOL])
        self.messages = [HumanMessage(content="Forecast onion prices in Nashik.")]

    def test_model_that_keeps_calling_tools_is_stopped(self) -> None:
        llm = _ScriptedLLM([_tool_call(MARKET_PRICE_TOOL, {"crop": "Onion", "location": "Nashik"})])
        with self.assertRaises(GenerationError):
            run_structured_generation(
                llm, self.messages, MarketForecastAnswer, self.tools, max_rounds=5
            )
        self.assertEqual(llm.calls, 5)

    def test_tool_result_is_fed_back_before_the_answer(self) -> None:
        llm = _ScriptedLLM(
            [
                _tool_call(MARKET_PRICE_TOOL, {"crop": "Onion", "location": "Nashik"}),
                _tool_call(
                    "MarketForecastAnswer",
                    {"forecast": "Prices rise", "suggestion": "Sell in two weeks"},
                    call_id="call_2",
                ),
            ]
        )
        answer = run_structured_generation(llm, self.messages, MarketForecastAnswer, self.tools)
        self.assertEqual(answer.suggestion, "Sell in two weeks")
        self.assertEqual(llm.tool_choice, "any")
        tool_messages = [m for m in llm.seen[1] if isinstance(m, ToolMessage)]
        self.assertEqual(len(tool_messages), 1)
        payload = json.loads(tool_messages[0].content)
        self.assertTrue(payload["found"])
        self.assertEqual(payload["crop"], "Onion")

    def test_without_tools_the_answer_tool_is_forced(self) -> None:
        llm = _ScriptedLLM(
            [_tool_call("MarketForecastAnswer", {"forecast": "Flat", "suggestion": "Hold"})]
        )
        answer = run_structured_generation(llm, self.messages, MarketForecastAnswer)
        self.assertEqual(answer.forecast, "Flat")
        self.assertEqual(llm.tool_choice, "MarketForecastAnswer")
        self.assertEqual(llm.bound, [MarketForecastAnswer])

    def test_unknown_tool_fails(self) -> None:
        llm = _ScriptedLLM([_tool_call("weather_lookup", {"city": "Pune"})])
        with self.assertRaises(GenerationError):
            run_structured_generation(llm, self.messages, MarketForecastAnswer, self.tools)

    def test_schema_violation_fails(self) -> None:
        llm = _ScriptedLLM([_tool_call("MarketForecastAnswer", {"forecast": "Up"})])
        with self.assertRaises(GenerationError):
            run_structured_generation(llm, self.messages, MarketForecastAnswer, self.tools)

    def test_diagnosis_without_product_suggestions_fails(self) -> None:
        args = {"plantName": "Tomato", "diagnosis": "Early blight", "remedies": "Remove infected leaves."}
        for payload in (args, {**args, "productSuggestions": []}):
            llm = _ScriptedLLM([_tool_call("CropDiagnosisAnswer", payload)])
            with self.assertRaises(GenerationError):
                run_structured_generation(llm, self.messages, CropDiagnosisAnswer)

    def test_fenced_json_reply_is_accepted(self) -> None:
        reply = AIMessage(content='```json\n{"forecast": "Up", "suggestion": "Wait"}\n```')
        answer = run_structured_generation(_ScriptedLLM([reply]), self.messages, MarketForecastAnswer)
        self.assertEqual(answer.suggestion, "Wait")

    def test_prose_reply_fails(self) -> None:
        reply = AIMessage(content="Prices will probably go up.")
        with self.assertRaises(GenerationError):
            run_structured_generation(_ScriptedLLM([reply]), self.messages, MarketForecastAnswer)


if __name__ == "__main__":
    unittest.main()
