"""
HTTP tests for main.app. The Quran provider and Gemini model are replaced; no network.
Run: python3 -m unittest tests.test_api -v
"""
import unittest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

import main
import metrics.streaming_metrics as streaming_metrics
from core.normalization import tokenize
from integrations.quran_api import ReferenceFetchError, SurahText
from integrations.suggestions import ERROR_SUGGESTIONS, SuggestionGenerator

BASMALA = "بِسْمِ اللَّهِ الرَّحْمَٰنِ الرَّحِيمِ (1)"

MODEL_TEXT = """1. 🎯 Focus on the words you replaced in this session
2. 📚 Review the verse slowly before reciting again"""


class FakeQuranClient:
    def get_surah(self, number):
        if number == 1:
            return SurahText(1, "الفاتحة", "Al-Faatiha", 1, BASMALA, tuple(tokenize(BASMALA)))
        if number == 2:
            raise ReferenceFetchError("upstream down")
        raise ValueError(f"Surah number must be between 1 and 114, got {number}")

    def list_surahs(self):
        return [{"number": 1, "englishName": "Al-Faatiha", "numberOfAyahs": 7}]


class ApiTestCase(unittest.TestCase):
    def setUp(self):
        streaming_metrics.reset()
        model = MagicMock()
        model.generate_content.return_value.text = MODEL_TEXT
        self.model = model
        patches = [
            patch.object(main, "quran_client", FakeQuranClient()),
            patch.object(main, "suggestion_generator", SuggestionGenerator(model=model)),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)
        self.client = TestClient(main.app)

    def tearDown(self):
        streaming_metrics.reset()


class TestHealthAndSurahs(ApiTestCase):
    def test_health(self):
        r = self.client.get("/")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["status"], "ok")
        self.assertIn("active_sessions", r.json())

    def test_list_surahs(self):
        r = self.client.get("/surahs")
        self.assertEqual(r.json()["surahs"][0]["englishName"], "Al-Faatiha")

    def test_get_surah(self):
        data = self.client.get("/surahs/1").json()
        self.assertEqual(data["totalWords"], 4)
        self.assertEqual(data["fullText"], BASMALA)

    def test_unknown_surah(self):
        self.assertEqual(self.client.get("/surahs/200").status_code, 404)

    def test_upstream_failure(self):
        self.assertEqual(self.client.get("/surahs/2").status_code, 502)


class TestCheckRecitation(ApiTestCase):
    def test_correct_chunk(self):
        r = self.client.post(
            "/check-recitation",
            json={"spokenText": "بسم الله", "fullText": BASMALA, "currentPosition": 0},
        )
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"errors": [], "newPosition": 2})

    def test_incorrect_word_reported(self):
        r = self.client.post(
            "/check-recitation",
            json={"spokenText": "كتاب", "fullText": BASMALA, "currentPosition": 1},
        )
        body = r.json()
        self.assertEqual(body["newPosition"], 2)
        self.assertEqual(body["errors"][0]["type"], "incorrect")
        self.assertEqual(body["errors"][0]["position"], 1)
        self.assertEqual(body["errors"][0]["expected"], "الله")

    def test_cursor_out_of_range(self):
        r = self.client.post(
            "/check-recitation",
            json={"spokenText": "بسم", "fullText": BASMALA, "currentPosition": 9},
        )
        self.assertEqual(r.status_code, 400)


class TestFinalAnalysis(ApiTestCase):
    def test_report_with_suggestions(self):
        r = self.client.post(
            "/final-analysis",
            json={
                "transcript": "بسم الله الرحمن كتاب",
                "fullText": BASMALA,
                "realtimeErrors": [
                    {"type": "incorrect", "position": 3, "spoken": "كتاب", "expected": "الرحيم", "similarity": 0}
                ],
            },
        )
        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["overall_accuracy"], 75.0)
        self.assertEqual(body["completion_percentage"], 100.0)
        self.assertEqual(body["error_counts"]["incorrect"], 1)
        self.assertEqual(body["live_error_counts"]["incorrect"], 1)
        self.assertEqual(len(body["suggestions"]), 2)
        self.assertTrue(body["processing_info"]["ai_suggestions"])
        self.assertEqual(streaming_metrics.get_snapshot()["reports_produced"], 1)

    def test_missing_fields(self):
        r = self.client.post("/final-analysis", json={"transcript": "", "fullText": BASMALA})
        self.assertEqual(r.status_code, 400)
        r = self.client.post("/final-analysis", json={"transcript": "بسم"})
        self.assertEqual(r.status_code, 400)

    def test_invalid_realtime_errors(self):
        r = self.client.post(
            "/final-analysis",
            json={"transcript": "بسم", "fullText": BASMALA, "realtimeErrors": [{"type": "typo"}]},
        )
        self.assertEqual(r.status_code, 400)

    def test_model_failure_falls_back(self):
        self.model.generate_content.side_effect = RuntimeError("quota")
        r = self.client.post("/final-analysis", json={"transcript": "بسم", "fullText": BASMALA})
        body = r.json()
        self.assertEqual(body["suggestions"], ERROR_SUGGESTIONS)
        self.assertFalse(body["processing_info"]["ai_suggestions"])
        self.assertEqual(streaming_metrics.get_snapshot()["suggestion_fallbacks"], 1)


class TestSessions(ApiTestCase):
    def test_lifecycle(self):
        r = self.client.post("/sessions", json={"surahId": 1})
        self.assertEqual(r.status_code, 201)
        sid = r.json()["sessionId"]
        self.assertEqual(r.json()["totalWords"], 4)

        r = self.client.post(f"/sessions/{sid}/chunks", json={"text": "بسم الله"})
        self.assertEqual(r.json()["newPosition"], 2)
        self.assertEqual(r.json()["progress"], 50.0)

        r = self.client.post(f"/sessions/{sid}/chunks", json={"text": "الرحمن كتاب"})
        self.assertEqual(r.json()["totalErrors"], 1)

        r = self.client.post(f"/sessions/{sid}/finish")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json()["overall_accuracy"], 75.0)
        self.assertEqual(len(r.json()["live_errors"]), 1)

        self.assertEqual(self.client.post(f"/sessions/{sid}/finish").status_code, 404)
        self.assertEqual(self.client.post(f"/sessions/{sid}/chunks", json={"text": "بسم"}).status_code, 404)

    def test_session_from_full_text(self):
        r = self.client.post("/sessions", json={"fullText": "الحمد لله"})
        sid = r.json()["sessionId"]
        self.client.post(f"/sessions/{sid}/chunks", json={"text": "الحمد"})
        r = self.client.post(f"/sessions/{sid}/restart")
        self.assertEqual(r.json()["newPosition"], 0)
        self.assertEqual(self.client.delete(f"/sessions/{sid}").status_code, 204)
        self.assertEqual(self.client.delete(f"/sessions/{sid}").status_code, 404)

    def test_create_requires_reference(self):
        self.assertEqual(self.client.post("/sessions", json={}).status_code, 400)
        self.assertEqual(self.client.post("/sessions", json={"surahId": 500}).status_code, 404)

    def test_unknown_session(self):
        self.assertEqual(self.client.post("/sessions/nope/restart").status_code, 404)


class TestWsRecite(ApiTestCase):
    def test_recite_surah_over_websocket(self):
        with self.client.websocket_connect("/ws/recite?surah=1") as ws:
            self.assertEqual(ws.receive_json()["type"], "ready")
            ws.send_text("بسم الله الرحمن الرحيم")
            self.assertEqual(ws.receive_json()["newPosition"], 4)
            ws.send_text("end")
            result = ws.receive_json()["result"]
            self.assertEqual(result["overall_accuracy"], 100.0)
            self.assertIn("processing_info", result)


class TestMetricsEndpoint(ApiTestCase):
    def test_snapshot(self):
        sid = self.client.post("/sessions", json={"fullText": "الحمد لله"}).json()["sessionId"]
        self.client.post(f"/sessions/{sid}/chunks", json={"text": "الحمد"})
        data = self.client.get("/metrics/streaming").json()
        self.assertEqual(data["active_sessions"], 1)
        self.assertEqual(data["chunks_processed"], 1)
        self.client.delete(f"/sessions/{sid}")


if __name__ == "__main__":
    unittest.main()
