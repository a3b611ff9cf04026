import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.core.config.scoring import clear_scoring_config_cache  # noqa: E402
from app.core.errors import UnknownPolicyError  # noqa: E402
from app.matching.matcher import match_courses  # noqa: E402
from app.recommend.policies import (  # noqa: E402
    career_relevance_score,
    difficulty_alignment_score,
    quality_score,
    resolve_policy,
    stepped_difficulty_score,
)
from app.recommend.ranker import dedupe_sections, filter_visible, score_matches  # noqa: E402
from app.schemas.assessment import Gap  # noqa: E402
from app.schemas.catalog import Course, CourseEnrichment, QualityIndicators  # noqa: E402
from app.schemas.recommendation import Recommendation  # noqa: E402
from app.scoring.categorizer import PROFICIENCY_LEVELS  # noqa: E402

INTERMEDIATE = PROFICIENCY_LEVELS["intermediate"]
ADVANCED = PROFICIENCY_LEVELS["advanced"]

GAPS = [
    Gap(skill_id="A", gap_score=80, priority=1, skill_name_en="Data Analysis"),
    Gap(skill_id="B", gap_score=50, priority=2, skill_name_en="Strategic Project Management"),
]

C1 = Course(id="C1", difficulty_level="intermediate", skills=[{"skill_id": "A", "relevance_score": 1.0}])
# Jaccard with "strategic project management" is 3/5 = 0.6 and neither string contains the other.
C2 = Course(id="C2", difficulty_level="intermediate", extracted_skills=["project strategic management office planning"])


def _rec(course_id, score, coverage, section="gap_based"):
    return Recommendation(
        course_id=course_id,
        recommendation_score=score,
        skill_coverage=coverage,
        source="catalog_link",
        section=section,
    )


class SkillBasedScoringTests(unittest.TestCase):
    def test_catalog_link_outranks_fuzzy_text_match(self):
        matches = match_courses(GAPS, [C2, C1], INTERMEDIATE)
        recs = score_matches(matches, GAPS, INTERMEDIATE, policy="skill_based_only")

        self.assertEqual([rec.course_id for rec in recs], ["C1", "C2"])
        c1, c2 = recs
        self.assertEqual(c1.score_breakdown.skill_match, 50.0)
        self.assertEqual(c1.score_breakdown.relevance, 50.0)
        self.assertEqual(c1.score_breakdown.ai_match, 0.0)
        self.assertEqual(c1.score_breakdown.difficulty_alignment, 100.0)
        self.assertAlmostEqual(c1.recommendation_score, 45.0)

        self.assertEqual(c2.score_breakdown.relevance, 0.0)
        self.assertEqual(c2.score_breakdown.ai_match, 25.0)
        self.assertAlmostEqual(c2.recommendation_score, 35.0)
        self.assertEqual(c2.source, "ai_extracted")

    def test_scores_are_deterministic(self):
        matches = match_courses(GAPS, [C1, C2], INTERMEDIATE)
        first = score_matches(matches, GAPS, INTERMEDIATE)
        second = score_matches(matches, GAPS, INTERMEDIATE)
        self.assertEqual([rec.model_dump() for rec in first], [rec.model_dump() for rec in second])

    def test_sub_scores_are_capped(self):
        course = Course(
            id="big",
            skills=[
                {"skill_id": "A", "relevance_score": 3},
                {"skill_id": "B", "relevance_score": 3},
            ],
        )
        rec = score_matches(match_courses(GAPS, [course], INTERMEDIATE), GAPS, INTERMEDIATE)[0]
        self.assertEqual(rec.score_breakdown.skill_match, 100.0)
        self.assertEqual(rec.score_breakdown.relevance, 100.0)
        self.assertEqual(rec.score_breakdown.difficulty_alignment, 50.0)

    def test_difficulty_alignment_values(self):
        self.assertEqual(difficulty_alignment_score("intermediate", INTERMEDIATE), 100.0)
        self.assertEqual(difficulty_alignment_score("beginner", INTERMEDIATE), 80.0)
        self.assertEqual(difficulty_alignment_score(None, INTERMEDIATE), 50.0)


class AlternativePolicyTests(unittest.TestCase):
    def test_basic_weighted_rewards_urgent_gaps(self):
        matches = match_courses(GAPS, [C1], INTERMEDIATE)
        rec = score_matches(matches, GAPS, INTERMEDIATE, policy="basic_weighted")[0]
        # 50% coverage plus 20 * (80 / 100) / priority 1
        self.assertAlmostEqual(rec.score_breakdown.skill_match, 66.0)
        self.assertAlmostEqual(rec.recommendation_score, 66.0)

    def test_enriched_policy_uses_neutral_defaults_without_enrichment(self):
        matches = match_courses(GAPS, [C1], INTERMEDIATE)
        rec = score_matches(matches, GAPS, INTERMEDIATE, policy="enriched_five_factor")[0]
        self.assertEqual(rec.score_breakdown.learning_outcomes, 50.0)
        self.assertEqual(rec.score_breakdown.quality, 60.0)
        self.assertEqual(rec.score_breakdown.career_relevance, 60.0)
        self.assertAlmostEqual(rec.recommendation_score, 68.4)

    def test_enriched_policy_with_enrichment(self):
        enrichment = CourseEnrichment(
            learning_outcomes=["Perform data analysis on sales records"],
            career_paths=["Business Intelligence", "Data Science"],
            quality_indicators=QualityIndicators(overall_score=4, content_clarity=4, practical_applicability=4),
        )
        matches = match_courses(GAPS, [C1], INTERMEDIATE)
        rec = score_matches(
            matches,
            GAPS,
            INTERMEDIATE,
            policy="enriched_five_factor",
            enrichments={"C1": enrichment},
        )[0]
        self.assertEqual(rec.score_breakdown.learning_outcomes, 100.0)
        self.assertEqual(rec.score_breakdown.quality, 80.0)
        self.assertEqual(rec.score_breakdown.career_relevance, 90.0)
        self.assertAlmostEqual(rec.recommendation_score, 83.4)

    def test_stepped_difficulty_and_enrichment_defaults(self):
        self.assertEqual(stepped_difficulty_score("advanced", ADVANCED), 100.0)
        self.assertEqual(stepped_difficulty_score("intermediate", ADVANCED), 85.0)
        self.assertEqual(stepped_difficulty_score("beginner", ADVANCED), 70.0)
        self.assertEqual(stepped_difficulty_score("advanced", INTERMEDIATE), 20.0)
        self.assertEqual(quality_score(None), 60.0)
        self.assertEqual(career_relevance_score(["a", "b", "c", "d", "e"]), 100.0)

    def test_policy_resolution(self):
        self.assertEqual(resolve_policy(), "skill_based_only")
        self.assertEqual(resolve_policy("basic_weighted"), "basic_weighted")
        with self.assertRaises(UnknownPolicyError):
            resolve_policy("popularity")


class OrderingAndFilteringTests(unittest.TestCase):
    def test_ties_break_on_coverage_then_course_id(self):
        matches = match_courses(
            GAPS,
            [
                Course(id="z", skills=[{"skill_id": "A"}]),
                Course(id="b", skills=[{"skill_id": "A"}]),
                Course(id="a", skills=[{"skill_id": "A"}]),
            ],
            INTERMEDIATE,
        )
        recs = score_matches(matches, GAPS, INTERMEDIATE)
        self.assertEqual([rec.course_id for rec in recs], ["a", "b", "z"])

    def test_visibility_fails_closed(self):
        recs = [_rec("c1", 90, 1), _rec("c2", 80, 1)]
        self.assertEqual(filter_visible(recs, None), [])
        self.assertEqual(filter_visible(recs, []), [])
        self.assertEqual([rec.course_id for rec in filter_visible(recs, {"c2", "c9"})], ["c2"])

    def test_dedupe_keeps_first_section(self):
        sections = {
            "career_based": [_rec("c1", 99, 1, "career_based"), _rec("c3", 10, 1, "career_based")],
            "interest_based": [_rec("c1", 50, 1, "interest_based"), _rec("c2", 40, 1, "interest_based")],
            "gap_based": [_rec("c2", 70, 1)],
        }
        deduped = dedupe_sections(sections)
        self.assertEqual([rec.course_id for rec in deduped["gap_based"]], ["c2"])
        self.assertEqual([rec.course_id for rec in deduped["interest_based"]], ["c1"])
        self.assertEqual([rec.course_id for rec in deduped["career_based"]], ["c3"])

        all_ids = [rec.course_id for recs in deduped.values() for rec in recs]
        self.assertEqual(len(all_ids), len(set(all_ids)))


class ConfiguredSectionOrderTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        text = (PROJECT_ROOT / "config" / "scoring.yaml").read_text(encoding="utf-8")
        reordered = text.replace("    - gap_based\n    - interest_based\n", "    - interest_based\n    - gap_based\n")
        self.assertNotEqual(text, reordered)
        path = Path(self._tmp.name) / "scoring.yaml"
        path.write_text(reordered, encoding="utf-8")
        self._env = patch.dict(os.environ, {"SCORING_CONFIG_PATH": str(path)})
        self._env.start()
        clear_scoring_config_cache()

    def tearDown(self):
        self._env.stop()
        clear_scoring_config_cache()
        self._tmp.cleanup()

    def test_configured_order_decides_which_section_keeps_a_course(self):
        sections = {
            "gap_based": [_rec("c1", 70, 1), _rec("c2", 60, 1)],
            "interest_based": [_rec("c1", 50, 1, "interest_based")],
        }
        deduped = dedupe_sections(sections)
        self.assertEqual(list(deduped), ["interest_based", "gap_based", "career_based"])
        self.assertEqual([rec.course_id for rec in deduped["interest_based"]], ["c1"])
        self.assertEqual([rec.course_id for rec in deduped["gap_based"]], ["c2"])
        self.assertEqual(deduped["career_based"], [])


if __name__ == "__main__":
    unittest.main()
