import json
import unittest

from app.core.errors import InvalidJson
from app.services.analysis_normalizer import (
    normalize_analysis_response,
    resolve_nested_json,
    unwrap_array,
    unwrap_body,
    unwrap_data,
)


def _normalize(payload) -> object:
    return normalize_analysis_response(json.dumps(payload))


class EnvelopeStageTests(unittest.TestCase):
    def test_unwrap_array(self):
        self.assertEqual(unwrap_array([{"score": 1}, {"score": 2}]), {"score": 1})
        self.assertEqual(unwrap_array([]), {})
        self.assertEqual(unwrap_array({"score": 1}), {"score": 1})

    def test_unwrap_body_only_for_objects(self):
        self.assertEqual(unwrap_body({"body": {"score": 5}}), {"score": 5})
        self.assertEqual(unwrap_body({"body": "text"}), {"body": "text"})

    def test_unwrap_data_requires_payload_keys(self):
        self.assertEqual(unwrap_data({"data": {"summary": "ok"}}), {"summary": "ok"})
        unrelated = {"score": 40, "data": {"id": 7}}
        self.assertIs(unwrap_data(unrelated), unrelated)

    def test_nested_json_only_when_score_absent(self):
        context = {"score": 10, "output": '{"score": 99}'}
        self.assertIs(resolve_nested_json(context), context)

    def test_nested_json_priority_order(self):
        context = {"content": '{"score": 3}', "output": '{"score": 1}', "json": '{"score": 2}'}
        self.assertEqual(resolve_nested_json(context), {"score": 1})

    def test_unparseable_nested_json_keeps_context(self):
        context = {"output": "{not json"}
        self.assertIs(resolve_nested_json(context), context)


class NormalizerTests(unittest.TestCase):
    def test_canonical_payload_passes_through(self):
        result = _normalize(
            {
                "score": 82,
                "match": "YES",
                "summary": "ok",
                "analysis_breakdown": {
                    "technical_score": 80,
                    "experience_score": 85,
                    "soft_skills_score": 80,
                    "overall_score": 82,
                },
            }
        )
        self.assertEqual(result.score, 82)
        self.assertEqual(result.match, "YES")
        self.assertEqual(result.status, "SELECTED")
        self.assertEqual(result.summary, "ok")
        breakdown = result.analysis_breakdown
        self.assertEqual(
            (breakdown.technical_score, breakdown.experience_score, breakdown.soft_skills_score, breakdown.overall_score),
            (80, 85, 80, 82),
        )

    def test_array_envelope_matches_bare_object(self):
        wrapped = _normalize([{"score": 91, "match": "yes"}])
        bare = _normalize({"score": 91, "match": "yes"})
        self.assertEqual(wrapped, bare)
        self.assertEqual(wrapped.status, "SELECTED")

    def test_empty_array_yields_defaults(self):
        result = _normalize([])
        self.assertEqual(result.score, 0)
        self.assertEqual(result.match, "NO")
        self.assertEqual(result.summary, "Analysis complete.")

    def test_body_and_data_envelopes(self):
        result = _normalize([{"body": {"data": {"score": 72, "summary": "Good fit"}}}])
        self.assertEqual(result.score, 72)
        self.assertEqual(result.summary, "Good fit")
        self.assertEqual(result.status, "SELECTED")

    def test_fenced_double_encoded_json(self):
        result = _normalize({"output": '```json\n{"score":55,"match":"no"}\n```'})
        self.assertEqual(result.score, 55)
        self.assertEqual(result.match, "NO")
        self.assertEqual(result.status, "REJECTED")

    def test_double_encoded_json_drives_all_fields(self):
        nested = json.dumps({"score": "88", "summary": "Nested summary", "key_skills_matched": "Go, Rust"})
        result = _normalize({"json": nested, "summary": "outer summary"})
        self.assertEqual(result.score, 88)
        self.assertEqual(result.summary, "Nested summary")
        self.assertEqual(result.key_skills_matched, ["Go", "Rust"])

    def test_missing_score_with_positive_match_flag(self):
        result = _normalize({"match": True})
        self.assertEqual(result.score, 75)
        self.assertEqual(result.match, "YES")
        self.assertEqual(result.status, "SELECTED")
        breakdown = result.analysis_breakdown
        self.assertEqual(
            {breakdown.technical_score, breakdown.experience_score, breakdown.soft_skills_score, breakdown.overall_score},
            {75},
        )

    def test_non_numeric_score_uses_match_fallback(self):
        self.assertEqual(_normalize({"score": "high", "match": "YES"}).score, 75)
        self.assertEqual(_normalize({"score": "high", "match": "yes"}).score, 0)
        self.assertEqual(_normalize({"score": "high"}).score, 0)

    def test_threshold_boundary(self):
        self.assertEqual(_normalize({"score": 70}).status, "SELECTED")
        self.assertEqual(_normalize({"score": 69}).status, "REJECTED")

    def test_explicit_match_overrides_threshold(self):
        result = _normalize({"score": 95, "match": "maybe"})
        self.assertEqual(result.match, "NO")
        self.assertEqual(result.status, "REJECTED")
        for value in ("Selected", "HIRE", "true", True):
            self.assertEqual(_normalize({"score": 10, "match": value}).status, "SELECTED", value)

    def test_null_match_counts_as_present(self):
        self.assertEqual(_normalize({"score": 90, "match": None}).status, "REJECTED")

    def test_case_insensitive_field_reads(self):
        result = _normalize({"SCORE": 71, "Summary": "Mixed case", "Candidate_Name": "Ada"})
        self.assertEqual(result.score, 71)
        self.assertEqual(result.summary, "Mixed case")
        self.assertEqual(result.candidate_name, "Ada")

    def test_text_fallback_chains(self):
        result = _normalize({"score": 50, "reason": "Lacks Kubernetes"})
        self.assertEqual(result.summary, "Lacks Kubernetes")
        self.assertEqual(result.recommendation, "Lacks Kubernetes")
        self.assertEqual(result.reasoning, "Lacks Kubernetes")
        self.assertEqual(result.candidate_name, "Candidate")
        self.assertEqual(result.candidate_email, "")

        result = _normalize({"score": 50, "summary": "s", "recommendation": "r"})
        self.assertEqual(result.reasoning, "r")

    def test_list_fields(self):
        result = _normalize({"score": 1, "key_skills_matched": ["Python"], "skills_missing": "AWS, GCP"})
        self.assertEqual(result.key_skills_matched, ["Python"])
        self.assertEqual(result.skills_missing, ["AWS", "GCP"])
        self.assertEqual(_normalize({"score": 1, "skills_missing": 5}).skills_missing, [])

    def test_partial_breakdown_defaults(self):
        result = _normalize(
            {"score": 64, "Analysis_Breakdown": {"TECHNICAL_SCORE": "70", "experience_score": "bad"}}
        )
        breakdown = result.analysis_breakdown
        self.assertEqual(breakdown.technical_score, 70)
        self.assertEqual(breakdown.experience_score, 0)
        self.assertEqual(breakdown.soft_skills_score, 0)
        self.assertEqual(breakdown.overall_score, 64)

    def test_non_object_breakdown_is_synthesized(self):
        breakdown = _normalize({"score": 40, "analysis_breakdown": "n/a"}).analysis_breakdown
        self.assertEqual(breakdown.overall_score, 40)
        self.assertEqual(breakdown.technical_score, 40)

    def test_score_is_not_clamped(self):
        self.assertEqual(_normalize({"score": 140}).score, 140)
        self.assertEqual(_normalize({"score": -5}).score, -5)

    def test_invalid_json_carries_bounded_snippet(self):
        with self.assertRaises(InvalidJson) as ctx:
            normalize_analysis_response("not json at all")
        self.assertEqual(ctx.exception.snippet, "not json at all")
        self.assertIn("not json at all", str(ctx.exception))

        with self.assertRaises(InvalidJson) as ctx:
            normalize_analysis_response("<html>" + "x" * 500)
        self.assertEqual(len(ctx.exception.snippet), 100)

    def test_deeply_nested_body_is_invalid_json(self):
        raw_body = "[" * 100000 + "]" * 100000
        with self.assertRaises(InvalidJson) as ctx:
            normalize_analysis_response(raw_body)
        self.assertEqual(len(ctx.exception.snippet), 100)

    def test_deeply_nested_inner_json_keeps_outer_context(self):
        inner = "{\"a\":" + "[" * 100000 + "]" * 100000 + "}"
        result = _normalize({"output": inner, "summary": "outer", "match": "yes"})
        self.assertEqual(result.summary, "outer")
        self.assertEqual(result.score, 0)
        self.assertEqual(result.status, "SELECTED")

    def test_list_match_uses_joined_string_form(self):
        self.assertEqual(_normalize({"score": 10, "match": ["yes"]}).status, "SELECTED")
        self.assertEqual(_normalize({"score": 90, "match": ["yes", "no"]}).status, "REJECTED")
        self.assertEqual(_normalize({"score": 90, "match": {"value": "yes"}}).status, "REJECTED")

    def test_match_is_not_trimmed(self):
        self.assertEqual(_normalize({"score": 90, "match": " yes "}).status, "REJECTED")

    def test_object_skill_items_are_serialized_as_json(self):
        result = _normalize({"score": 1, "key_skills_matched": [{"name": "Go"}, "Rust", None]})
        self.assertEqual(result.key_skills_matched, ['{"name": "Go"}', "Rust"])

    def test_result_is_immutable(self):
        result = _normalize({"score": 80})
        with self.assertRaises(Exception):
            result.score = 10


if __name__ == "__main__":
    unittest.main()
