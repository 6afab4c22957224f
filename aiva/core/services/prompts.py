"""
Prompt builders
===============

Assemble the prompts the recommendation and chat features send through the
pipeline.  Inputs are plain mappings as loaded from the user-data export
(assessments, characteristics, technique interactions, chat history); any
section may be missing.

Layer:  core.services
"""

from __future__ import annotations

import textwrap
from typing import Any, Iterable, List, Mapping

ASSESSMENT_FIELDS = (
    ("Focus Level",           "focus_level"),
    ("Energy Level",          "energy_level"),
    ("Stress Level",          "stress_level"),
    ("Emotional Regulation",  "emotional_regulation"),
    ("Task Switching Ability", "task_switching"),
)


def build_recommendation_prompt(profile: Mapping[str, Any]) -> str:
    assessments = profile.get("assessments") or []
    latest = assessments[0] if assessments else {}

    assessment = "\n".join(
        f"- {label}: {latest.get(key, 'unknown')}" for label, key in ASSESSMENT_FIELDS
    )
    characteristics = "\n".join(
        f"- {c.get('characteristic', '')}: {c.get('description') or ''}"
        for c in profile.get("characteristics") or []
    ) or "- none recorded"
    interactions = "\n".join(
        f"- {i.get('technique_title', '')} (feedback: {i.get('feedback') or 'No specific feedback'})"
        for i in profile.get("technique_interactions") or []
    ) or "- none recorded"

    return textwrap.dedent("""\
        You are AIva, an AI coach specializing in neurodivergent support. Provide a highly personalized technique recommendation.

        User's latest assessment shows:
        {assessment}

        User Characteristics:
        {characteristics}

        Previous Technique Interactions:
        {interactions}

        Based on this profile, recommend ONE technique that:
        1. Directly addresses the user's specific challenges
        2. Builds upon their existing strengths
        3. Is likely to be both challenging and achievable

        Answer with the technique name on the first line, then the
        implementation steps and why it suits this individual.
        """).format(
        assessment=assessment,
        characteristics=characteristics,
        interactions=interactions,
    )


def build_chat_prompt(history: Iterable[Mapping[str, str]], message: str) -> str:
    lines: List[str] = [
        f"{'User' if m.get('role') == 'user' else 'Assistant'}: {m.get('content', '')}"
        for m in history
    ]
    return (
        "You are a helpful AI assistant deeply specialized in neurodivergence coaching. "
        "You have expertise in ADHD, autism, and other neurodivergent conditions. "
        "You provide supportive, evidence-based advice while being compassionate and understanding.\n\n"
        "Previous conversation:\n"
        + "\n".join(lines)
        + f"\n\nUser: {message}\nAssistant:"
    )
