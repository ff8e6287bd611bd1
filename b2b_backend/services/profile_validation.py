"""
Rule engine for personal profile data.

Every function returns a list of ``{"field": path, "message": text}`` errors;
an empty list means the data is valid. Paths look like ``section.field`` or
``section[i].field``.
"""

import re
from datetime import date, datetime
from urllib.parse import urlparse

from b2b_backend.services.profile_schema import ARRAY_SECTIONS, MAX_SKILLS, get_role_schema

COUNTRY_CODE_PATTERN = re.compile(r"^[A-Z]{2}$")
PHONE_PATTERN = re.compile(r"^\+?[1-9]\d{1,14}$")

_DATE_FORMATS = ("%Y-%m-%d", "%Y-%m", "%m/%Y")


def is_missing(value) -> bool:
    return value is None or value == ""


def parse_date(value) -> date | None:
    """Parse ``YYYY-MM-DD``, ``YYYY-MM`` or ``MM/YYYY``; None when unparseable."""
    if not isinstance(value, str):
        return None
    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    # ISO timestamps sent by some clients
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_length(value: str, rules: dict, path: str) -> list[dict]:
    errors = []
    message = rules.get("message")
    if rules.get("min_length") and len(value) < rules["min_length"]:
        errors.append({"field": path, "message": message or f"{path} must be at least {rules['min_length']} characters"})
    if rules.get("max_length") and len(value) > rules["max_length"]:
        errors.append({"field": path, "message": message or f"{path} must be at most {rules['max_length']} characters"})
    return errors


def validate_field(value, rules: dict, path: str) -> list[dict]:
    """Validate one present value against its rules."""
    errors: list[dict] = []
    rule_type = rules.get("type")
    message = rules.get("message")

    if rule_type in ("text", "rich_text"):
        if not isinstance(value, str):
            return [{"field": path, "message": message or f"{path} must be text"}]
        errors.extend(_check_length(value, rules, path))
        if rule_type == "text" and rules.get("pattern") and not re.search(rules["pattern"], value):
            errors.append({"field": path, "message": message or f"{path} format is invalid"})

    elif rule_type == "email":
        if not isinstance(value, str):
            return [{"field": path, "message": message or f"{path} must be an email"}]
        errors.extend(_check_length(value, rules, path))
        if rules.get("pattern") and not re.search(rules["pattern"], value):
            errors.append({"field": path, "message": message or f"{path} must be a valid email"})

    elif rule_type == "number":
        if not _is_number(value):
            return [{"field": path, "message": message or f"{path} must be a number"}]
        low, high = rules.get("min"), rules.get("max")
        if _is_number(low) and value < low:
            errors.append({"field": path, "message": message or f"{path} must be at least {low}"})
        if _is_number(high) and value > high:
            errors.append({"field": path, "message": message or f"{path} must be at most {high}"})

    elif rule_type == "boolean":
        if not isinstance(value, bool):
            errors.append({"field": path, "message": message or f"{path} must be a boolean"})

    elif rule_type == "date":
        parsed = parse_date(value)
        if parsed is None:
            errors.append({"field": path, "message": message or f"{path} must be a valid date"})
        elif rules.get("no_future") and parsed > date.today():
            errors.append({"field": path, "message": message or f"{path} cannot be in the future"})

    elif rule_type == "url":
        if not isinstance(value, str):
            return [{"field": path, "message": message or f"{path} must be a URL"}]
        parsed = urlparse(value)
        if not parsed.scheme or not parsed.netloc:
            errors.append({"field": path, "message": message or f"{path} must be a valid URL"})

    elif rule_type == "enum":
        allowed = rules.get("values") or []
        received = value.strip() if isinstance(value, str) else value
        if not any(str(v).strip().lower() == str(received).lower() for v in allowed):
            errors.append(
                {
                    "field": path,
                    "message": (
                        f"{message or path + ' validation failed'}. "
                        f"Allowed values: [{', '.join(allowed)}]. Received: \"{value}\""
                    ),
                }
            )

    elif rule_type == "array":
        if not isinstance(value, list):
            return [{"field": path, "message": message or f"{path} must be an array"}]
        if rules.get("max_items") and len(value) > rules["max_items"]:
            errors.append({"field": path, "message": message or f"{path} must have at most {rules['max_items']} items"})

    elif rule_type == "country_code":
        if not isinstance(value, str) or not COUNTRY_CODE_PATTERN.match(value):
            errors.append({"field": path, "message": message or f"{path} must be a valid ISO 3166-1 country code"})

    elif rule_type == "phone":
        if not isinstance(value, str) or not PHONE_PATTERN.match(value):
            errors.append({"field": path, "message": message or f"{path} must be in international format"})

    return errors


def _cross_field_errors(item: dict, section: str, path: str) -> list[dict]:
    if section == "education":
        start, end = item.get("start_year"), item.get("end_year")
        if _is_number(start) and _is_number(end) and end <= start:
            return [{"field": f"{path}.end_year", "message": "End year must be after start year"}]
    elif section == "experience":
        start, end = parse_date(item.get("start_date")), parse_date(item.get("end_date"))
        if start and end and end <= start:
            return [{"field": f"{path}.end_date", "message": "End date must be after start date"}]
    return []


def validate_section(data, section_schema: dict, section: str, path: str | None = None) -> list[dict]:
    """Validate an object against a section's field rules."""
    path = path or section
    if not isinstance(data, dict):
        return [{"field": path, "message": f"{path} must be an object"}]

    errors: list[dict] = []
    for field_name, rules in section_schema.items():
        value = data.get(field_name)
        field_path = f"{path}.{field_name}"
        if is_missing(value):
            if rules.get("required"):
                errors.append({"field": field_path, "message": rules.get("message") or f"{field_name} is required"})
            continue
        errors.extend(validate_field(value, rules, field_path))

    errors.extend(_cross_field_errors(data, section, path))
    return errors


def validate_array_section(items: list, section_schema: dict, section: str) -> list[dict]:
    errors: list[dict] = []
    for i, item in enumerate(items):
        errors.extend(validate_section(item, section_schema, section, f"{section}[{i}]"))
    return errors


def validate_profile_data(data: dict, role: str) -> list[dict]:
    """Validate a complete profile document for a role."""
    role_schema = get_role_schema(role)
    if role_schema is None:
        return [{"field": "role", "message": f"Invalid user role: {role}"}]

    errors: list[dict] = []
    if data.get("personal_information"):
        errors.extend(validate_section(data["personal_information"], role_schema["personal_information"], "personal_information"))
    else:
        errors.append({"field": "personal_information", "message": "Personal information is required"})

    if data.get("about") and "about" in role_schema:
        errors.extend(validate_section(data["about"], role_schema["about"], "about"))

    for section in ARRAY_SECTIONS:
        value = data.get(section)
        if not value or section not in role_schema:
            continue
        if not isinstance(value, list):
            errors.append({"field": section, "message": f"{section.capitalize()} section must be an array"})
            continue
        if section == "skills" and len(value) > MAX_SKILLS:
            errors.append({"field": "skills", "message": f"Maximum {MAX_SKILLS} skills allowed per profile"})
        errors.extend(validate_array_section(value, role_schema[section], section))

    return errors


def validate_profile_field(field_data, field: str, role: str) -> list[dict]:
    """Validate the new value of one top-level profile section."""
    role_schema = get_role_schema(role)
    if role_schema is None:
        return [{"field": "role", "message": f"Invalid user role: {role}"}]
    if field not in role_schema:
        return [{"field": field, "message": f"Field '{field}' is not allowed for role '{role}'"}]
    if not field_data:
        return [{"field": field, "message": f"Field '{field}' data is required"}]

    if isinstance(field_data, list):
        errors = []
        if field == "skills" and len(field_data) > MAX_SKILLS:
            errors.append({"field": "skills", "message": f"Maximum {MAX_SKILLS} skills allowed per profile"})
        errors.extend(validate_array_section(field_data, role_schema[field], field))
        return errors
    return validate_section(field_data, role_schema[field], field)
