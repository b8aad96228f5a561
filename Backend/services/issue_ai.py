"""
Issue Triage Service

Asks the AI model whether a submitted photo matches its description and
which departments should handle it. Without an API key (or when the call
fails) a keyword heuristic picks the departments and the issue is left
unvalidated for manual review.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from app_utils.constants import DEPARTMENTS, DEPARTMENT_KEYWORDS, SUGGEST_KEYWORDS
from services.openai_client import (
    DEFAULT_MODEL,
    OpenAIError,
    chat_completion,
    extract_json,
    get_api_key,
    get_model,
)

logger = logging.getLogger(__name__)

MAX_FIELD_LENGTH = 200
MAX_DEPARTMENTS = 3


@dataclass
class AiAnalysis:
    description_pic_ai: str
    validation: bool
    reason: str
    assigned_departments: List[str] = field(default_factory=list)
    source: str = "fallback"

    def to_response(self):
        return {
            "description_pic_ai": self.description_pic_ai,
            "validation": self.validation,
            "reason_text": self.reason,
            "assigned_departments": list(self.assigned_departments),
            "assigned_department": ", ".join(self.assigned_departments) if self.assigned_departments else None,
            "source": self.source,
        }


def has_photo(photo) -> bool:
    return bool(photo and str(photo).strip())


def keyword_departments_heuristic(text: Optional[str] = "") -> List[str]:
    lc = (text or "").lower()
    return [dept for dept, pattern in DEPARTMENT_KEYWORDS if pattern.search(lc)]


def build_fallback(description, photo) -> AiAnalysis:
    heuristic_depts = keyword_departments_heuristic(description or "")

    if not has_photo(photo):
        return AiAnalysis(
            description_pic_ai="No photo provided for analysis.",
            validation=False,
            reason="Validation requires a photo; manual review needed.",
            assigned_departments=heuristic_depts,
            source="fallback:no_photo",
        )

    return AiAnalysis(
        description_pic_ai="AI analysis unavailable; photo stored for manual review.",
        validation=False,
        reason="AI service not configured on server.",
        assigned_departments=heuristic_depts,
        source="fallback:no_key",
    )


def _triage_messages(description, photo):
    prompt = (
        f"A citizen submitted an issue. Description: {description or '<empty>'}. "
        "Compare it with the attached photo. Respond ONLY as JSON with keys: "
        "photo_description (<=200 chars), match (true/false), reason (<=200 chars), "
        "departments (array of 1-3 unique strings chosen from "
        f"[{', '.join(DEPARTMENTS)}]). Do not add commentary."
    )
    return [
        {"role": "system", "content": "You are a municipal issue triage assistant. Always respond with valid JSON."},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": photo}},
            ],
        },
    ]


def analyze_issue(description, photo, model_override=None) -> AiAnalysis:
    """
    Run the AI triage for one issue. Never raises; every failure path
    returns the fallback analysis tagged with its source.
    """
    default_summary = build_fallback(description, photo)

    if not get_api_key():
        return default_summary

    if not has_photo(photo):
        return replace(default_summary, source="fallback:no_photo")

    model = model_override or get_model()

    try:
        content = chat_completion(
            _triage_messages(description, photo),
            model=model,
            temperature=0.1,
            max_tokens=220,
            json_mode=True,
        )
    except OpenAIError as e:
        if e.is_model_error and model != DEFAULT_MODEL and model_override != DEFAULT_MODEL:
            logger.warning(f"[issue-ai] Model {model} unavailable, retrying with {DEFAULT_MODEL}")
            return analyze_issue(description, photo, model_override=DEFAULT_MODEL)
        logger.error(f"[issue-ai] AI request failed: {e.response_data or e}")
        return replace(default_summary, source="fallback:api_error")

    try:
        parsed = extract_json(content)
    except ValueError as e:
        logger.warning(f"[issue-ai] Failed to parse AI JSON response, falling back: {e}")
        return replace(default_summary, source="fallback:parse_error")

    photo_description = parsed.get("photo_description")
    photo_description = (
        photo_description[:MAX_FIELD_LENGTH]
        if isinstance(photo_description, str)
        else "AI did not provide a description."
    )
    match = parsed.get("match") if isinstance(parsed.get("match"), bool) else False
    reason = parsed.get("reason")
    reason = reason[:MAX_FIELD_LENGTH] if isinstance(reason, str) else "AI did not provide a reason."

    departments_raw = parsed.get("departments") if isinstance(parsed.get("departments"), list) else []
    sanitized = []
    for value in departments_raw:
        dept = value.strip().lower() if isinstance(value, str) else ""
        if dept in DEPARTMENTS and dept not in sanitized:
            sanitized.append(dept)

    # Departments only stick when the photo backs up the description
    assigned = sanitized[:MAX_DEPARTMENTS] if match else []
    if match and not assigned:
        assigned = keyword_departments_heuristic(f"{description or ''} {photo_description}")[:MAX_DEPARTMENTS]

    return AiAnalysis(
        description_pic_ai=photo_description,
        validation=match,
        reason=reason,
        assigned_departments=assigned,
        source=f"openai:{model_override}" if model_override else "openai",
    )


def suggest_department(description, photo, departments=None):
    """
    Quick single-department suggestion for the verification screen.
    Returns {valid, reason, department, raw}. Raises OpenAIError when the
    upstream call fails.
    """
    departments = [d for d in (departments or []) if isinstance(d, str)]

    if not get_api_key():
        logger.warning("[ai-suggest] OPENAI key missing -> using fallback rules")
        if not has_photo(photo):
            return {"valid": False, "reason": "CANNOT_VALIDATE_NO_PHOTO", "department": None, "raw": None}

        text = (description or "").lower()
        department = next((dept for dept, pattern in SUGGEST_KEYWORDS if pattern.search(text)), None)
        if department is None:
            department = departments[0] if departments else None
        return {"valid": True, "reason": "FALLBACK_RULES_USED", "department": department, "raw": None}

    prompt = (
        "You are an assistant that reads a citizen-submitted issue and determines two things:\n"
        "1) Whether the issue can be validated from the provided information. If there is no photo "
        "attached respond with: 'CANNOT_VALIDATE_NO_PHOTO'.\n"
        "2) Suggest the most appropriate department from the following list: "
        f"{', '.join(departments)}. Only return the single best match (one word).\n"
        f"\nIssue description:\n{description or '<no description>'}\n"
    )
    if has_photo(photo):
        prompt += "\nNote: A photo was attached. You may assume it is relevant evidence.\n"

    model = get_model()
    logger.info(f"[ai-suggest] Using OpenAI chat completions with model: {model}")
    content = chat_completion(
        [
            {"role": "system", "content": "You are a helpful municipal issue triage assistant."},
            {"role": "user", "content": prompt},
        ],
        model=model,
        temperature=0.2,
        max_tokens=200,
    )

    if "CANNOT_VALIDATE_NO_PHOTO" in content:
        return {"valid": False, "reason": "CANNOT_VALIDATE_NO_PHOTO", "department": None, "raw": content}

    lowered = content.lower()
    found = next((d for d in departments if d.lower() in lowered), None)
    return {"valid": True, "reason": "OPENAI_OK", "department": found, "raw": content}
