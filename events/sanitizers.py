# events/sanitizers.py
"""
Input sanitization and normalization for EventHub.

All user-generated content passes through these functions before being
stored. Enumerations arrive in mixed case (`Approved`, `Non-IIIT`) and are
normalized here to the lowercase model values.
"""
import re
from typing import Optional

import bleach


# Allowed HTML tags for rich text (event descriptions)
ALLOWED_TAGS = [
    'p', 'br', 'strong', 'em', 'u', 'a', 'ul', 'ol', 'li',
    'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'blockquote', 'code', 'pre'
]

ALLOWED_ATTRIBUTES = {
    'a': ['href', 'title'],
}

CUSTOM_FIELD_TYPES = (
    "text", "textarea", "email", "number", "date", "select", "radio", "checkbox", "file",
)
OPTION_FIELD_TYPES = ("select", "radio")


def sanitize_text(text: Optional[str], max_length: Optional[int] = None, strip: bool = True) -> str:
    """
    Sanitize plain text input.

    - Strips leading/trailing whitespace
    - Removes control characters
    - Enforces maximum length
    - Returns empty string for None input
    """
    if text is None:
        return ""

    text = str(text)
    if strip:
        text = text.strip()

    # Remove control characters except newlines and tabs
    text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text


def sanitize_html(html: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Sanitize HTML content, removing dangerous elements.
    """
    if html is None:
        return ""

    clean = bleach.clean(
        str(html).strip(),
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        strip=True
    )

    if max_length and len(clean) > max_length:
        clean = clean[:max_length]

    return clean


def sanitize_title(title: Optional[str]) -> str:
    """
    Sanitize event titles.

    - Max 255 characters
    - No HTML
    - Single line (no newlines)
    """
    text = sanitize_text(title, max_length=255)
    text = re.sub(r'[\r\n]+', ' ', text)
    text = re.sub(r'\s+', ' ', text)
    return text


def sanitize_description(description: Optional[str]) -> str:
    """
    Sanitize event descriptions.

    - Max 10000 characters
    - HTML sanitized
    """
    return sanitize_html(description, max_length=10000)


# ─────────────────────────────────────────────────────────────
# Enumeration normalizers
# ─────────────────────────────────────────────────────────────

def _slug(value) -> str:
    return re.sub(r'[\s\-]+', '_', str(value).strip().lower())


def normalize_choice(value, choices, default=None):
    """
    Map a mixed-case label onto one of the model's choice keys.

    Matches either the key or the human label. Returns `default` when the
    value is empty or unknown.
    """
    if value is None or str(value).strip() == "":
        return default
    wanted = _slug(value)
    for key, label in choices:
        if wanted == _slug(key) or wanted == _slug(label):
            return key
    return default


def normalize_eligibility(value) -> str:
    """
    Normalize eligibility strings to one of: all, iiit, non_iiit.

    Free-form labels like "IIIT + External" or "Both" mean everyone.
    """
    if not value:
        return "all"
    text = str(value).strip().lower()

    if text in ("all", "both") or ("external" in text and "iiit" in text and "non" not in text):
        return "all"

    if "iiit" in text:
        return "non_iiit" if "non" in text or "external" in text else "iiit"

    if "external" in text or "non" in text:
        return "non_iiit"

    return "all"


def parse_bool(value) -> Optional[bool]:
    """Query-string booleans: true/false/1/0/yes/no; anything else is None."""
    if isinstance(value, bool):
        return value
    if value is None:
        return None
    text = str(value).strip().lower()
    if text in ("true", "1", "yes"):
        return True
    if text in ("false", "0", "no"):
        return False
    return None


def parse_int_list(value) -> list:
    """'1, 2,x' -> [1, 2]"""
    if not value:
        return []
    items = value if isinstance(value, (list, tuple)) else str(value).split(",")
    result = []
    for item in items:
        item = str(item).strip()
        if item.isdigit():
            result.append(int(item))
    return result


def fuzzy_pattern(search: str) -> str:
    """
    Regex that matches the search characters in order with anything between
    them ("hck" matches "hackathon").
    """
    chars = [re.escape(ch) for ch in search.strip() if not ch.isspace()]
    return ".*".join(chars)


# ─────────────────────────────────────────────────────────────
# Custom registration form
# ─────────────────────────────────────────────────────────────

class ValidationError(Exception):
    """Raised when validation fails. `code` names the failure for callers."""

    def __init__(self, message, code="InvalidCustomField"):
        super().__init__(message)
        self.message = message
        self.code = code


def normalize_custom_fields(fields) -> list:
    """
    Validate and normalize the ordered list of form field descriptors.

    Each descriptor becomes {id, label, type, required, options}. Missing
    ids are derived from the position so responses can always be keyed.
    """
    if fields is None:
        return []
    if not isinstance(fields, list):
        raise ValidationError("custom_fields must be a list")

    normalized = []
    seen = set()
    for index, field in enumerate(fields):
        if not isinstance(field, dict):
            raise ValidationError(f"custom_fields[{index}] must be an object")

        label = sanitize_title(field.get("label"))
        if not label:
            raise ValidationError(f"custom_fields[{index}] requires a label")

        field_type = str(field.get("type") or "text").strip().lower()
        if field_type not in CUSTOM_FIELD_TYPES:
            raise ValidationError(f"custom_fields[{index}] has unknown type '{field_type}'")

        field_id = sanitize_text(str(field.get("id") or f"field_{index + 1}"), max_length=64)
        if field_id in seen:
            raise ValidationError(f"Duplicate custom field id '{field_id}'")
        seen.add(field_id)

        options = field.get("options") or []
        if not isinstance(options, list):
            raise ValidationError(f"custom_fields[{index}].options must be a list")
        options = [sanitize_text(str(o), max_length=255) for o in options]
        if field_type in OPTION_FIELD_TYPES and not options:
            raise ValidationError(f"custom_fields[{index}] of type {field_type} needs options")

        normalized.append({
            "id": field_id,
            "label": label,
            "type": field_type,
            "required": bool(field.get("required", False)),
            "options": options,
        })
    return normalized


def _is_blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def validate_custom_responses(fields: list, responses) -> dict:
    """
    Check responses against the event's form. Returns the responses as
    given (stored verbatim).

    Raises ValidationError naming the first offending field.
    """
    responses = responses or {}
    if not isinstance(responses, dict):
        raise ValidationError("custom_field_responses must be an object", code="InvalidCustomField")

    for field in fields or []:
        field_id = field.get("id")
        # Answers may be keyed by field id or by label
        value = responses.get(field_id, responses.get(field.get("label")))
        if _is_blank(value):
            if field.get("required"):
                raise ValidationError(
                    f"Missing required field: {field.get('label') or field_id}", code="MissingCustomField"
                )
            continue
        if field.get("type") in OPTION_FIELD_TYPES and field.get("options"):
            if str(value) not in field["options"]:
                raise ValidationError(f"Invalid option for {field.get('label') or field_id}")
    return responses
