import math
import re
from typing import Iterable, Optional

from handbook.errors import ValidationError


# Structured ids (ch-on-001) and legacy slugs are both accepted.
CHAPTER_ID_PATTERN = re.compile(r"^ch-([a-z]{2})-(\d{3})$", re.IGNORECASE)
SLUG_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]{3,36}$")
SECTION_ID_PATTERN = re.compile(r"^sec-([a-z]{2})-(\d{3})-(\d{3})$", re.IGNORECASE)

IMAGE_USAGES = ("content", "cover", "diagram", "illustration")
PUBLISH_STATUSES = ("DRAFT", "REVIEW", "PUBLISHED", "ARCHIVED")
PAYMENT_TYPES = ("FREE", "MEMBER_ONLY", "TRIAL_INCLUDED", "PREMIUM")
CONTENT_FORMATS = ("HTML", "MARKDOWN", "PLAIN_TEXT")

# Characters per minute used for the section read-time estimate.
READ_CHARS_PER_MINUTE = 200


def is_valid_chapter_id(value) -> bool:
    if not isinstance(value, str):
        return False
    return bool(CHAPTER_ID_PATTERN.match(value) or SLUG_ID_PATTERN.match(value))


def validate_chapter_id(value, field: str = "id") -> str:
    if not is_valid_chapter_id(value):
        raise ValidationError(
            "Invalid chapter id format. Use ch-<province>-<nnn> or 3-36 chars [a-zA-Z0-9_-]",
            field=field,
            code="invalid_format",
        )
    return value


def require_single_owner(chapter_id: Optional[str], section_id: Optional[str]) -> None:
    if chapter_id and section_id:
        raise ValidationError(
            "An image can belong to a chapter or a section, not both",
            field="chapter_id,section_id",
            code="owner_ambiguous",
        )
    if not chapter_id and not section_id:
        raise ValidationError(
            "Either chapter_id or section_id is required",
            field="chapter_id,section_id",
            code="owner_required",
        )


def validate_choice(value, choices: Iterable[str], field: str) -> str:
    choices = tuple(choices)
    if value not in choices:
        raise ValidationError(
            f"{field} must be one of: {', '.join(choices)}",
            field=field,
            code=f"invalid_{field}",
        )
    return value


def validate_usage(usage: Optional[str]) -> Optional[str]:
    if usage is None:
        return None
    return validate_choice(usage, IMAGE_USAGES, "usage")


def require_fields(data: dict, fields: Iterable[str]) -> None:
    missing = [
        f for f in fields
        if data.get(f) is None or (isinstance(data.get(f), str) and not data[f].strip())
    ]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            field=",".join(missing),
            code="fields_required",
        )


def estimate_read_time(content: str) -> int:
    return math.ceil(len(content or "") / READ_CHARS_PER_MINUTE)


def reject_nulls(data: dict, fields: Iterable[str]) -> None:
    """Partial updates may omit a required column but not clear it."""
    cleared = [f for f in fields if f in data and data[f] is None]
    if cleared:
        raise ValidationError(
            f"Fields cannot be null: {', '.join(cleared)}",
            field=",".join(cleared),
            code="field_not_nullable",
        )
