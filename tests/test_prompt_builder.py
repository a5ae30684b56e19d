import base64
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from agri_assist.domain.errors import FlowValidationError
from agri_assist.prompts import (
    build_forecast_rewrite,
    build_generation_request,
    build_scheme_rewrite,
    build_transcription_prompt,
    validate_request,
)
from agri_assist.schemas import (
    AdvisoryCalendarAnswer,
    AdvisoryCalendarRequest,
    CropDiagnosisAnswer,
    CropDiagnosisRequest,
    MarketForecastAnswer,
    MarketForecastRequest,
    SchemeAnswer,
    SchemeNavigationRequest,
    TranscriptionRequest,
    VoiceInteractionRequest,
)

IMAGE_URI = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8leaf").decode("ascii")


class ValidationTests(unittest.TestCase):
    def test_missing_fields_are_named(self) -> None:
        cases = [
            (CropDiagnosisRequest(language="Hindi"), ["image_ref"]),
            (MarketForecastRequest(crop="Onion", language="Hindi"), ["location"]),
            (SchemeNavigationRequest(query="  ", language="Tamil"), ["query"]),
            (
                AdvisoryCalendarRequest(crop="Ragi", location="Kolar", language="Kannada"),
                ["sowing_date"],
            ),
            (VoiceInteractionRequest(), ["audio_ref", "language"]),
            (TranscriptionRequest(audio_ref="data:audio/wav;base64,AAAA"), ["language"]),
        ]
        for request, missing in cases:
            with self.subTest(flow=request.flow):
                with self.assertRaises(FlowValidationError) as ctx:
                    validate_request(request)
                self.assertEqual(ctx.exception.missing_fields, missing)

    def test_image_must_be_data_uri(self) -> None:
        request = CropDiagnosisRequest(image_ref="https://example.com/a.jpg", language="Hindi")
        with self.assertRaises(FlowValidationError) as ctx:
            validate_request(request)
        self.assertEqual(ctx.exception.missing_fields, ["image_ref"])

    def test_sowing_date_format(self) -> None:
        request = AdvisoryCalendarRequest(
            crop="Ragi", location="Kolar", sowing_date="12/06/2025", language="Kannada"
        )
        with self.assertRaises(FlowValidationError) as ctx:
            validate_request(request)
        self.assertEqual(ctx.exception.missing_fields, ["sowing_date"])

    def test_camel_case_aliases(self) -> None:
        request = CropDiagnosisRequest.model_validate(
            {"photoDataUri": IMAGE_URI, "language": "Marathi"}
        )
        self.assertEqual(request.image_ref, IMAGE_URI)
        request = AdvisoryCalendarRequest.model_validate(
            {"crop": "Ragi", "location": "Kolar", "sowingDate": "2025-06-12", "language": "Kannada"}
        )
        self.assertEqual(request.parsed_sowing_date().isoformat(), "2025-06-12")


class LanguagePropagationTests(unittest.TestCase):
    def test_every_template_carries_the_language(self) -> None:
        requests = [
            (CropDiagnosisRequest(image_ref=IMAGE_URI, language="Telugu"), CropDiagnosisAnswer),
            (MarketForecastRequest(crop="Onion", location="Nashik", language="Telugu"), MarketForecastAnswer),
            (SchemeNavigationRequest(query="PM-KISAN", language="Telugu"), SchemeAnswer),
            (
                AdvisoryCalendarRequest(
                    crop="Ragi", location="Kolar", sowing_date="2025-06-12", language="Telugu"
                ),
                AdvisoryCalendarAnswer,
            ),
        ]
        for request, schema in requests:
            with self.subTest(flow=request.flow):
                generation = build_generation_request(request, schema=schema)
                self.assertIn("following language: Telugu", generation.instructions)
                self.assertEqual(generation.language, "Telugu")
                self.assertIs(generation.response_schema, schema)

    def test_rewrites_carry_the_language(self) -> None:
        forecast = build_forecast_rewrite(
            MarketForecastAnswer(forecast="up", suggestion="hold"), "Bengali"
        )
        scheme = build_scheme_rewrite(SchemeAnswer(answer="PM-KISAN pays"), "Bengali")
        for generation in (forecast, scheme):
            self.assertIn("following language: Bengali", generation.instructions)
            self.assertEqual(generation.role, "rewrite")
        self.assertIn("Original Forecast: up", forecast.instructions)

    def test_diagnosis_sends_the_photo_to_the_vision_model(self) -> None:
        generation = build_generation_request(
            CropDiagnosisRequest(image_ref=IMAGE_URI, language="Hindi"),
            schema=CropDiagnosisAnswer,
        )
        self.assertEqual(generation.media_refs, (IMAGE_URI,))
        self.assertEqual(generation.role, "vision")
        self.assertNotIn("image_ref", generation.metadata)

    def test_tools_are_passed_through(self) -> None:
        generation = build_generation_request(
            MarketForecastRequest(crop="Onion", location="Nashik", language="Hindi"),
            schema=MarketForecastAnswer,
            tools=("market_price_lookup",),
        )
        self.assertEqual(generation.tool_names, ["market_price_lookup"])
        self.assertEqual(generation.metadata["crop"], "Onion")

    def test_transcription_prompt_mentions_schemes_only_for_scheme_queries(self) -> None:
        audio = "data:audio/webm;base64,AAAA"
        scheme = build_transcription_prompt(TranscriptionRequest(audio_ref=audio, language="Hindi"))
        voice = build_transcription_prompt(VoiceInteractionRequest(audio_ref=audio, language="Kannada"))
        self.assertIn("government schemes", scheme)
        self.assertIn("primary language is Hindi", scheme)
        self.assertNotIn("government schemes", voice)
        self.assertIn("primary language is Kannada", voice)


if __name__ == "__main__":
    unittest.main()
