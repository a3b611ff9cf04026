import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.recommend.engine import build_recommendation_sections, parse_terms  # noqa: E402
from app.schemas.assessment import Gap  # noqa: E402
from app.schemas.catalog import Course, CourseEnrichment  # noqa: E402
from app.schemas.recommendation import ExamContext  # noqa: E402
from app.scoring.categorizer import PROFICIENCY_LEVELS  # noqa: E402
from app.services.enrichment import enrich_course, fetch_enrichments  # noqa: E402

INTERMEDIATE = PROFICIENCY_LEVELS["intermediate"]

GAPS = [
    Gap(skill_id="A", gap_score=80, priority=1, skill_name_en="Data Analysis"),
    Gap(skill_id="B", gap_score=50, priority=2, skill_name_en="Spreadsheets"),
]

CATALOG = [
    Course(id="c1", name_en="Analytics Foundations", difficulty_level="intermediate",
           skills=[{"skill_id": "A", "relevance_score": 1.0}]),
    Course(id="c2", name_en="Excel for Everyone", difficulty_level="beginner",
           skills=[{"skill_id": "B", "relevance_score": 0.5, "skill_name_en": "Excel"}]),
    Course(id="c3", name_en="Public Speaking", subject="Communication", difficulty_level="beginner"),
    Course(id="c4", name_en="Leadership Essentials", subject="Management", difficulty_level="advanced"),
    Course(id="c5", name_en="Communication at Work", subject="Communication"),
]

ALL_VISIBLE = ["c1", "c2", "c3", "c4", "c5"]


class FailingProvider:
    name = "failing"

    def __init__(self):
        self.calls = []

    def enrich(self, course):
        self.calls.append(course.id)
        raise TimeoutError("graph service timed out")


class StaticProvider:
    name = "static"

    def __init__(self, enrichment):
        self.enrichment = enrichment

    def enrich(self, course):
        return self.enrichment


class SectionBuildTests(unittest.TestCase):
    def test_three_sections_with_reasons(self):
        sections = build_recommendation_sections(
            GAPS,
            CATALOG,
            INTERMEDIATE,
            visible_course_ids=ALL_VISIBLE,
            interests=["s9:Communication", "Data Analysis"],
            career_domains=["Management"],
            exam=ExamContext(test_id="t1", test_title_en="Quarterly Review", test_title_ar="المراجعة"),
        )
        self.assertEqual(sections.policy, "skill_based_only")
        self.assertEqual(sections.category, "intermediate")
        self.assertEqual([rec.course_id for rec in sections.gap_based], ["c1", "c2"])
        # c4 is above the learner's level and never shown
        self.assertEqual([rec.course_id for rec in sections.interest_based], ["c3", "c5"])
        self.assertEqual(sections.career_based, [])

        top = sections.gap_based[0]
        self.assertEqual(top.section, "gap_based")
        self.assertIn("Quarterly Review", top.reason.reason_en)
        self.assertIn("matches your level", top.reason.reason_en)
        self.assertEqual(top.reason.skill_gap_score, 80)
        self.assertEqual(sections.gap_based[1].reason.skill_gap_score, 50)

        interest = sections.interest_based[0]
        self.assertEqual(interest.source, "interest_match")
        self.assertEqual(interest.matching_skills, ["Communication"])
        self.assertEqual(interest.recommendation_score, 50.0)
        self.assertIsNone(interest.reason.skill_gap_score)

    def test_course_ids_unique_across_sections(self):
        sections = build_recommendation_sections(
            GAPS,
            CATALOG,
            PROFICIENCY_LEVELS["advanced"],
            visible_course_ids=ALL_VISIBLE,
            interests=["Analytics", "Excel"],
            career_domains=["Management", "Communication"],
        )
        ids = sections.all_course_ids()
        self.assertEqual(len(ids), len(set(ids)))
        self.assertEqual([rec.course_id for rec in sections.interest_based], [])
        self.assertEqual([rec.course_id for rec in sections.career_based], ["c3", "c4", "c5"])

    def test_missing_or_empty_allow_list_shows_nothing(self):
        for visible in (None, []):
            with self.subTest(visible=visible):
                sections = build_recommendation_sections(
                    GAPS, CATALOG, INTERMEDIATE, visible_course_ids=visible, interests=["Communication"]
                )
                self.assertEqual(sections.all_course_ids(), [])

    def test_allow_list_filters_before_limit(self):
        sections = build_recommendation_sections(
            GAPS, CATALOG, INTERMEDIATE, visible_course_ids=["c2"], limit=1
        )
        self.assertEqual([rec.course_id for rec in sections.gap_based], ["c2"])

    def test_limit_applies_per_section(self):
        sections = build_recommendation_sections(
            GAPS, CATALOG, INTERMEDIATE, visible_course_ids=ALL_VISIBLE, limit=1
        )
        self.assertEqual([rec.course_id for rec in sections.gap_based], ["c1"])

    def test_no_gaps_and_no_interests_is_empty_not_error(self):
        sections = build_recommendation_sections([], CATALOG, INTERMEDIATE, visible_course_ids=ALL_VISIBLE)
        self.assertEqual(sections.gap_based, [])
        self.assertEqual(sections.interest_based, [])
        self.assertEqual(sections.career_based, [])

    def test_persisted_statuses_are_applied(self):
        sections = build_recommendation_sections(
            GAPS, CATALOG, INTERMEDIATE, visible_course_ids=ALL_VISIBLE, statuses={"c2": "enrolled"}
        )
        statuses = {rec.course_id: rec.status for rec in sections.gap_based}
        self.assertEqual(statuses, {"c1": "recommended", "c2": "enrolled"})

    def test_parse_terms(self):
        self.assertEqual(parse_terms(["12:Data Analysis", "data analysis", " Excel ", "", 5]), ["Data Analysis", "Excel"])


class EnrichmentDegradationTests(unittest.TestCase):
    def test_failing_collaborator_does_not_abort_batch(self):
        provider = FailingProvider()
        sections = build_recommendation_sections(
            GAPS,
            CATALOG,
            INTERMEDIATE,
            visible_course_ids=ALL_VISIBLE,
            policy="enriched_five_factor",
            enrichment_providers=[provider],
        )
        self.assertEqual(sorted(provider.calls), ["c1", "c2"])
        self.assertEqual([rec.course_id for rec in sections.gap_based], ["c1", "c2"])
        self.assertEqual(sections.gap_based[0].score_breakdown.quality, 60.0)

    def test_skill_policy_never_calls_collaborators(self):
        provider = FailingProvider()
        build_recommendation_sections(
            GAPS, CATALOG, INTERMEDIATE, visible_course_ids=ALL_VISIBLE, enrichment_providers=[provider]
        )
        self.assertEqual(provider.calls, [])

    def test_enrich_course_falls_through_to_next_provider(self):
        good = CourseEnrichment(career_paths=["Analytics"])
        result = enrich_course(CATALOG[0], [FailingProvider(), StaticProvider(good)])
        self.assertEqual(result.career_paths, ["Analytics"])

        empty = enrich_course(CATALOG[0], [FailingProvider()])
        self.assertTrue(empty.is_empty)

    def test_fetch_enrichments_with_no_providers(self):
        result = fetch_enrichments(CATALOG[:2], [])
        self.assertEqual(set(result), {"c1", "c2"})
        self.assertTrue(all(item.is_empty for item in result.values()))


if __name__ == "__main__":
    unittest.main()
