"""Milestone suggestions for an assessment, LLM-backed with a rule-based template."""
from __future__ import annotations

import json
import logging
import math
import os
from datetime import date, timedelta
from typing import List, Literal, Tuple

import openai

from studyflow.api.schemas.planner import Assessment, Milestone
from studyflow.core.config import settings
from studyflow.observability.tracing import trace

logger = logging.getLogger(__name__)

MilestoneSource = Literal["llm", "rule-based"]

# (title, share of the days until due, estimate hours)
TEMPLATE_STEPS = (
    ("Topic & Research Plan", 0.10, 2.0),
    ("Research & Notes", 0.35, 6.0),
    ("First Draft", 0.60, 6.0),
    ("Revision & Proofread", 0.85, 3.0),
)
FINAL_STEP = ("Finalise & Submit", 1.0)
DEFAULT_LLM_ESTIMATE_HOURS = 2.0
MIN_LLM_MILESTONES = 4
MAX_LLM_MILESTONES = 6


def days_until_due(assessment: Assessment, today: date) -> int:
    return max(1, (assessment.due_date - today).days)


def rule_based_milestones(assessment: Assessment, today: date) -> List[Milestone]:
    """Spread the standard five steps across the time left before the due date."""
    days = days_until_due(assessment, today)
    milestones = [
        Milestone(
            title=title,
            target_date=today + timedelta(days=math.ceil(days * share)),
            estimate_hours=hours,
            assessment_title=assessment.title,
            assessment_due_date=assessment.due_date,
        )
        for title, share, hours in TEMPLATE_STEPS
    ]
    final_title, final_hours = FINAL_STEP
    milestones.append(
        Milestone(
            title=final_title,
            target_date=assessment.due_date,
            estimate_hours=final_hours,
            assessment_title=assessment.title,
            assessment_due_date=assessment.due_date,
        )
    )
    return milestones


def generate_milestones(
    assessment: Assessment,
    rubric_text: str | None = None,
    today: date | None = None,
    request_id: str | None = None,
) -> Tuple[List[Milestone], MilestoneSource]:
    """Return suggested milestones and where they came from."""
    today = today or date.today()
    api_key = os.environ.get("OPENAI_API_KEY")
    if not api_key:
        return rule_based_milestones(assessment, today), "rule-based"

    with trace(
        "milestones.generate",
        metadata={
            "assessment_title": assessment.title,
            "due_date": assessment.due_date.isoformat(),
            "model": settings.milestone_model,
            "has_rubric": bool(rubric_text),
        },
        request_id=request_id,
    ) as generation_trace:
        try:
            milestones = _request_milestones_from_llm(api_key, assessment, rubric_text, today)
        except Exception as exc:
            logger.warning("Milestone generation failed for %s, using template: %s", assessment.title, exc)
            return rule_based_milestones(assessment, today), "rule-based"
        if generation_trace:
            generation_trace.update(
                metadata={"llm_output_text": ", ".join(milestone.title for milestone in milestones)[:500]}
            )
    return milestones, "llm"


def _request_milestones_from_llm(
    api_key: str,
    assessment: Assessment,
    rubric_text: str | None,
    today: date,
) -> List[Milestone]:
    client = openai.OpenAI(api_key=api_key)
    weight = assessment.weight if assessment.weight is not None else "unknown"
    rubric_block = f"Rubric:\n{rubric_text}\n" if rubric_text else ""
    prompt = (
        "You help plan student assessments.\n\n"
        f"Assessment:\n- Title: {assessment.title}\n- Due: {assessment.due_date.isoformat()}\n- Weight: {weight}\n"
        f"{rubric_block}\n"
        f"Propose {MIN_LLM_MILESTONES}-{MAX_LLM_MILESTONES} milestone steps (short titles) ordered from now until "
        "the due date. Return a JSON object with key 'milestones': a list of objects with "
        "'title' (string), 'offset_days' (integer days from today) and 'estimate_hours' (integer)."
    )
    completion = client.chat.completions.create(
        model=settings.milestone_model,
        response_format={"type": "json_object"},
        temperature=0.2,
        messages=[{"role": "user", "content": prompt}],
    )
    content = completion.choices[0].message.content or "{}"
    return parse_llm_milestones(json.loads(content), assessment, today)


def parse_llm_milestones(payload: object, assessment: Assessment, today: date) -> List[Milestone]:
    """Convert the model's JSON into milestones, clamping offsets into the time left."""
    entries = payload.get("milestones") if isinstance(payload, dict) else payload
    if not isinstance(entries, list):
        raise ValueError("LLM response did not contain a milestone list")

    days = days_until_due(assessment, today)
    milestones: List[Milestone] = []
    for entry in entries[:MAX_LLM_MILESTONES]:
        if not isinstance(entry, dict) or not str(entry.get("title") or "").strip():
            continue
        offset = _clamp_offset(entry.get("offset_days"), days)
        estimate = entry.get("estimate_hours")
        milestones.append(
            Milestone(
                title=str(entry["title"]).strip(),
                target_date=today + timedelta(days=offset),
                estimate_hours=float(estimate) if isinstance(estimate, (int, float)) else DEFAULT_LLM_ESTIMATE_HOURS,
                assessment_title=assessment.title,
                assessment_due_date=assessment.due_date,
            )
        )
    if not milestones:
        raise ValueError("LLM response contained no usable milestones")
    return milestones


def _clamp_offset(value: object, days: int) -> int:
    try:
        offset = round(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError):
        offset = 0
    return max(0, min(days, offset))
