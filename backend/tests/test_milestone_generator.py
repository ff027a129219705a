from __future__ import annotations

from datetime import date

import pytest

from studyflow.api.schemas.planner import Assessment, Milestone
from studyflow.services import milestone_generator
from studyflow.services.milestone_generator import generate_milestones, parse_llm_milestones, rule_based_milestones

TODAY = date(2025, 3, 1)
ESSAY = Assessment(title="Essay", due_date=date(2025, 3, 21), weight=30)


def test_template_spreads_steps_before_due_date() -> None:
    milestones = rule_based_milestones(ESSAY, TODAY)

    assert [m.title for m in milestones] == [
        "Topic & Research Plan",
        "Research & Notes",
        "First Draft",
        "Revision & Proofread",
        "Finalise & Submit",
    ]
    assert [m.target_date for m in milestones] == [
        date(2025, 3, 3),
        date(2025, 3, 8),
        date(2025, 3, 13),
        date(2025, 3, 18),
        date(2025, 3, 21),
    ]
    assert [m.estimate_hours for m in milestones] == [2.0, 6.0, 6.0, 3.0, 1.0]
    assert all(m.assessment_title == "Essay" for m in milestones)


def test_template_for_overdue_assessment_uses_one_day() -> None:
    late = Assessment(title="Quiz", due_date=date(2025, 2, 20))

    milestones = rule_based_milestones(late, TODAY)

    assert milestones[0].target_date == date(2025, 3, 2)
    assert milestones[-1].target_date == late.due_date


def test_llm_payload_is_clamped_and_cleaned() -> None:
    payload = {
        "milestones": [
            {"title": " Outline ", "offset_days": -3, "estimate_hours": 3},
            {"title": "Draft", "offset_days": 99},
            {"title": ""},
            "junk",
        ]
    }

    milestones = parse_llm_milestones(payload, ESSAY, TODAY)

    assert [(m.title, m.target_date, m.estimate_hours) for m in milestones] == [
        ("Outline", TODAY, 3.0),
        ("Draft", date(2025, 3, 21), 2.0),
    ]


def test_llm_payload_accepts_bare_list_and_caps_count() -> None:
    payload = [{"title": f"Step {index}", "offset_days": index} for index in range(8)]

    milestones = parse_llm_milestones(payload, ESSAY, TODAY)

    assert len(milestones) == 6


def test_llm_payload_without_usable_entries_is_rejected() -> None:
    with pytest.raises(ValueError):
        parse_llm_milestones({"milestones": [{"title": "  "}]}, ESSAY, TODAY)
    with pytest.raises(ValueError):
        parse_llm_milestones({"steps": []}, ESSAY, TODAY)


def test_generate_without_api_key_uses_template(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)

    milestones, source = generate_milestones(ESSAY, today=TODAY)

    assert source == "rule-based"
    assert len(milestones) == 5


def test_generate_falls_back_when_llm_fails(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")

    def _boom(*args, **kwargs):
        raise RuntimeError("rate limited")

    monkeypatch.setattr(milestone_generator, "_request_milestones_from_llm", _boom)

    milestones, source = generate_milestones(ESSAY, rubric_text="Argue a position.", today=TODAY)

    assert source == "rule-based"
    assert milestones[-1].title == "Finalise & Submit"


def test_generate_uses_llm_result(monkeypatch) -> None:
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    suggested = [Milestone(title="Annotated bibliography", target_date=TODAY, estimate_hours=2, assessment_title="Essay")]
    monkeypatch.setattr(milestone_generator, "_request_milestones_from_llm", lambda *args, **kwargs: suggested)

    milestones, source = generate_milestones(ESSAY, today=TODAY)

    assert source == "llm"
    assert milestones == suggested
