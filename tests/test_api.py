import json
import sys
import tempfile
import unittest
from dataclasses import replace
from pathlib import Path
from unittest.mock import patch

from fastapi.testclient import TestClient

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config import settings  # noqa: E402
from app.main import app  # noqa: E402
from app.services import catalog as catalog_service  # noqa: E402
from app.storage import results_store  # noqa: E402

CATALOG = {
    "skills": [
        {"id": "s1", "name_en": "Communication"},
        {"id": "s2", "name_en": "Data Analysis", "name_ar": "تحليل البيانات"},
    ],
    "courses": [
        {"id": "c1", "name_en": "Analytics Foundations", "difficulty_level": "intermediate",
         "skills": [{"skill_id": "s2", "relevance_score": 1.0}]},
        {"id": "c2", "name_en": "Advanced Forecasting", "difficulty_level": "advanced",
         "skills": [{"skill_id": "s2", "relevance_score": 1.0}]},
        {"id": "c3", "name_en": "Hidden Analytics", "difficulty_level": "beginner",
         "skills": [{"skill_id": "s2", "relevance_score": 1.0}]},
        {"id": "c4", "name_en": "Presenting with Data", "subject": "Communication", "difficulty_level": "beginner"},
    ],
    "visible_course_ids": ["c1", "c2", "c4"],
}

SUBMISSION = {
    "user_id": "u1",
    "test_id": "t1",
    "test_title_en": "Quarterly Review",
    "test_title_ar": "المراجعة الفصلية",
    "questions": [
        {"id": "q1", "type": "self_rating", "skill_id": "s1"},
        {"id": "q2", "type": "self_rating", "skill_id": "s2"},
        {"id": "q3", "type": "open_text", "skill_id": "s1"},
    ],
    "responses": [
        {"question_id": "q1", "raw_value": 9},
        {"question_id": "q2", "raw_value": 3},
        {"question_id": "q3", "raw_value": "I present weekly updates."},
        {"question_id": "q404", "raw_value": 1},
    ],
    "analyze_open_text": False,
}


class SkillEngineApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        root = Path(self._tmp.name)
        catalog_path = root / "catalog.json"
        catalog_path.write_text(json.dumps(CATALOG, ensure_ascii=False), encoding="utf-8")
        test_settings = replace(settings, results_db_path=str(root / "results.db"), catalog_path=str(catalog_path))
        self._patches = [
            patch.object(results_store, "settings", test_settings),
            patch.object(catalog_service, "settings", test_settings),
        ]
        for item in self._patches:
            item.start()
        results_store.close_store()

    def tearDown(self):
        results_store.close_store()
        for item in reversed(self._patches):
            item.stop()
        self._tmp.cleanup()

    def _submit(self, assignment_id="a1", **overrides):
        response = self.client.post(f"/v1/assessments/{assignment_id}/submit", json={**SUBMISSION, **overrides})
        self.assertEqual(response.status_code, 200, response.text)
        return response.json()

    def test_health(self):
        response = self.client.get("/v1/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"status": "healthy", "scoring_policy": "skill_based_only"})

    def test_submit_and_fetch_assessment(self):
        body = self._submit()
        self.assertEqual(body["skill_results"]["s1"]["score"], 90)
        self.assertEqual(body["skill_results"]["s2"]["score"], 30)
        self.assertEqual(body["overall_score"], 60)
        self.assertEqual(body["category"]["key"], "intermediate")
        self.assertEqual(body["strengths"], ["s1"])
        self.assertEqual([gap["skill_id"] for gap in body["gaps"]], ["s2"])
        self.assertEqual(body["gaps"][0]["priority"], 1)
        self.assertIsNone(body["open_text_analysis"])
        self.assertEqual(body["exam_context"]["test_title_en"], "Quarterly Review")

        stored = self.client.get("/v1/assessments/a1")
        self.assertEqual(stored.status_code, 200)
        stored_body = stored.json()
        self.assertEqual(stored_body["overall_score"], 60)
        self.assertEqual(stored_body["gaps"][0]["skill_name_en"], "Data Analysis")

    def test_open_text_analysis_is_stored(self):
        from app.schemas.assessment import OpenTextAnalysis

        analysis = OpenTextAnalysis(themes=["Reporting"], summary_en="Communicates progress regularly.")
        with patch("app.services.assessment_service.analyze_open_text", return_value=analysis) as analyzer:
            body = self._submit(analyze_open_text=True)
        answers = analyzer.call_args.args[0]
        self.assertEqual(answers, [("q3", "I present weekly updates.")])
        self.assertEqual(body["open_text_analysis"]["themes"], ["Reporting"])
        self.assertEqual(self.client.get("/v1/assessments/a1").json()["open_text_analysis"]["themes"], ["Reporting"])

    def test_skill_profile_tracks_progress(self):
        self._submit("a1")
        improved = [dict(item) for item in SUBMISSION["responses"]]
        improved[1]["raw_value"] = 7
        self._submit("a2", responses=improved)

        response = self.client.get("/v1/users/u1/skill-profile")
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        skills = {item["skill_id"]: item for item in body["skills"]}
        self.assertEqual(skills["s1"]["improvement_trend"], "stable")
        self.assertEqual(skills["s2"]["improvement_trend"], "improving")
        self.assertEqual(skills["s2"]["last_assessment_score"], 70)
        self.assertEqual([item["assignment_id"] for item in body["history"]], ["a2", "a1"])
        self.assertEqual([item["overall_score"] for item in body["history"]], [80, 60])

    def test_skill_profile_for_unknown_user_is_404(self):
        self.assertEqual(self.client.get("/v1/users/ghost/skill-profile").status_code, 404)

    def test_unbounded_weight_is_422(self):
        questions = [{"id": "q1", "type": "self_rating", "skill_id": "s1", "weight": 1e308}]
        response = self.client.post(
            "/v1/assessments/a1/submit",
            json={**SUBMISSION, "questions": questions},
        )
        self.assertEqual(response.status_code, 422)

    def test_unknown_assessment_is_404(self):
        response = self.client.get("/v1/assessments/missing")
        self.assertEqual(response.status_code, 404)

    def test_invalid_payload_is_422(self):
        response = self.client.post(
            "/v1/assessments/a1/submit",
            json={"questions": [{"id": "q1", "type": "essay"}]},
        )
        self.assertEqual(response.status_code, 422)

    def test_user_recommendations_and_status(self):
        self._submit()
        response = self.client.get("/v1/users/u1/recommendations", params={"interests": ["Communication"]})
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["category"], "intermediate")
        # c2 is above level, c3 is not visible
        self.assertEqual([rec["course_id"] for rec in body["gap_based"]], ["c1"])
        self.assertEqual([rec["course_id"] for rec in body["interest_based"]], ["c4"])
        top = body["gap_based"][0]
        self.assertEqual(top["matching_skills"], ["Data Analysis"])
        self.assertIn("Quarterly Review", top["reason"]["reason_en"])
        self.assertEqual(top["status"], "recommended")

        patched = self.client.patch("/v1/users/u1/recommendations/c1/status", json={"status": "Enrolled"})
        self.assertEqual(patched.status_code, 200)
        self.assertEqual(patched.json()["status"], "enrolled")

        again = self.client.get("/v1/users/u1/recommendations").json()
        self.assertEqual(again["gap_based"][0]["status"], "enrolled")

    def test_invalid_status_is_400(self):
        response = self.client.patch("/v1/users/u1/recommendations/c1/status", json={"status": "archived"})
        self.assertEqual(response.status_code, 400)

    def test_recommendations_without_assessment_is_404(self):
        self.assertEqual(self.client.get("/v1/users/ghost/recommendations").status_code, 404)

    def test_unknown_policy_is_rejected(self):
        self._submit()
        response = self.client.get("/v1/users/u1/recommendations", params={"policy": "popularity"})
        self.assertEqual(response.status_code, 422)

    def test_preview_is_stateless(self):
        response = self.client.post(
            "/v1/recommendations/preview",
            json={
                "gaps": [{"skill_id": "s2", "gap_score": 70, "priority": 1}],
                "overall_score": 60,
                "courses": CATALOG["courses"],
                "skills": CATALOG["skills"],
                "visible_course_ids": ["c1", "c3"],
                "policy": "basic_weighted",
            },
        )
        self.assertEqual(response.status_code, 200, response.text)
        body = response.json()
        self.assertEqual(body["policy"], "basic_weighted")
        self.assertEqual([rec["course_id"] for rec in body["gap_based"]], ["c1", "c3"])
        self.assertEqual(body["gap_based"][0]["matching_skills"], ["Data Analysis"])
        self.assertIsNone(results_store.get_latest_assessment_for_user("u1"))

    def test_preview_without_allow_list_is_empty(self):
        response = self.client.post(
            "/v1/recommendations/preview",
            json={"gaps": [{"skill_id": "s2", "gap_score": 70, "priority": 1}], "courses": CATALOG["courses"]},
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["gap_based"], [])

    def test_preview_validation(self):
        response = self.client.post("/v1/recommendations/preview", json={"overall_score": 150})
        self.assertEqual(response.status_code, 422)


if __name__ == "__main__":
    unittest.main()
