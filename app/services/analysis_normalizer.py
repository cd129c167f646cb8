"""Decode an untrusted webhook response into an :class:`AnalysisResult`.

Each stage takes the current context and returns the (possibly replaced)
context, so the envelope and nested-JSON rules can be exercised one at a
time. ``normalize_analysis_response`` runs them in order.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from app.core.errors import InvalidJson
from app.schemas.analysis import AnalysisBreakdown, AnalysisResult
from app.services.analysis_payload import MISSING, coerce_number, get_field, get_list, get_number, get_text

logger = logging.getLogger(__name__)

MATCH_SCORE_THRESHOLD = 70
FALLBACK_MATCH_SCORE = 75.0
DEFAULT_SUMMARY = "Analysis complete."
DEFAULT_CANDIDATE_NAME = "Candidate"

_DATA_PAYLOAD_KEYS = ("score", "summary", "analysis_breakdown")
_NESTED_JSON_KEYS = ("output", "json", "content")
_POSITIVE_MATCH_VALUES = {"yes", "true", "selected", "hire"}
_JSON_FENCE_RE = re.compile(r"```json\n?|\n?```")


def parse_payload(raw_body: str) -> Any:
    try:
        return json.loads(raw_body)
    except (TypeError, ValueError, RecursionError) as exc:
        raise InvalidJson(raw_body) from exc


def unwrap_array(payload: Any) -> Any:
    if isinstance(payload, list):
        return payload[0] if payload else {}
    return payload


def unwrap_body(payload: Any) -> Any:
    body = payload.get("body") if isinstance(payload, dict) else None
    if isinstance(body, dict):
        return body
    return payload


def unwrap_data(payload: Any) -> Any:
    data = payload.get("data") if isinstance(payload, dict) else None
    if isinstance(data, dict) and any(key in data for key in _DATA_PAYLOAD_KEYS):
        return data
    return payload


def unwrap_envelopes(payload: Any) -> dict[str, Any]:
    context = unwrap_data(unwrap_body(unwrap_array(payload)))
    return context if isinstance(context, dict) else {}


def _looks_like_json(text: str) -> bool:
    return text.strip().startswith("{") or "```json" in text


def resolve_nested_json(context: dict[str, Any]) -> dict[str, Any]:
    """Switch to a double-encoded JSON object when ``score`` is absent."""
    if get_field(context, "score") is not MISSING:
        return context
    for key in _NESTED_JSON_KEYS:
        candidate = get_field(context, key)
        if not isinstance(candidate, str) or not _looks_like_json(candidate):
            continue
        cleaned = _JSON_FENCE_RE.sub("", candidate).strip()
        try:
            nested = json.loads(cleaned)
        except (ValueError, RecursionError):
            logger.debug("nested_json_parse_failed field=%s", key)
            return context
        if isinstance(nested, dict):
            return nested
        return context
    return context


def _is_positive_match_flag(value: Any) -> bool:
    return value is True or value == "YES"


def extract_score(context: dict[str, Any]) -> float:
    score = coerce_number(get_field(context, "score"))
    if score is not None:
        return score
    logger.warning("analysis_score_missing keys=%s", sorted(str(key) for key in context)[:20])
    if _is_positive_match_flag(get_field(context, "match")):
        return FALLBACK_MATCH_SCORE
    return 0.0


def _match_string(value: Any, *, nested: bool = False) -> str:
    """String form used for the match comparison; lists join their items with commas."""
    if value is None:
        return "" if nested else "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return ",".join(_match_string(item, nested=True) for item in value)
    if isinstance(value, dict):
        return "[object Object]"
    return str(value)


def derive_match(context: dict[str, Any], score: float) -> tuple[str, str]:
    value = get_field(context, "match")
    if value is MISSING:
        selected = score >= MATCH_SCORE_THRESHOLD
    else:
        selected = _match_string(value).lower() in _POSITIVE_MATCH_VALUES
    return ("YES", "SELECTED") if selected else ("NO", "REJECTED")


def extract_breakdown(context: dict[str, Any], score: float) -> AnalysisBreakdown:
    breakdown = get_field(context, "analysis_breakdown")
    if not isinstance(breakdown, dict):
        return AnalysisBreakdown(
            technical_score=score,
            experience_score=score,
            soft_skills_score=score,
            overall_score=score,
        )
    return AnalysisBreakdown(
        technical_score=get_number(breakdown, "technical_score", 0.0),
        experience_score=get_number(breakdown, "experience_score", 0.0),
        soft_skills_score=get_number(breakdown, "soft_skills_score", 0.0),
        overall_score=get_number(breakdown, "overall_score", score),
    )


def build_result(context: dict[str, Any]) -> AnalysisResult:
    score = extract_score(context)
    match, status = derive_match(context, score)
    summary = get_text(context, "summary", "reason", "analysis") or DEFAULT_SUMMARY
    recommendation = get_text(context, "recommendation") or summary
    reasoning = get_text(context, "reasoning") or recommendation
    return AnalysisResult(
        candidate_name=get_text(context, "candidate_name") or DEFAULT_CANDIDATE_NAME,
        candidate_email=get_text(context, "candidate_email") or "",
        score=score,
        match=match,
        status=status,
        summary=summary,
        recommendation=recommendation,
        key_skills_matched=get_list(context, "key_skills_matched"),
        skills_missing=get_list(context, "skills_missing"),
        analysis_breakdown=extract_breakdown(context, score),
        reasoning=reasoning,
    )


def normalize_analysis_response(raw_body: str) -> AnalysisResult:
    payload = parse_payload(raw_body)
    context = unwrap_envelopes(payload)
    context = resolve_nested_json(context)
    return build_result(context)
