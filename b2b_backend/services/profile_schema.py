"""
Built-in profile schema for the personal roles.

Each role maps section names to ``{field: rules}``. Rules carry a ``type``,
``required`` and optional constraints; ``message`` is what the client sees
when the rule fails. Number limits may be symbolic (``current_year``,
``current_year_plus_10``, ``start_year``) and are resolved per lookup.
"""

import copy
from datetime import datetime

from cachetools import TTLCache

NAME_PATTERN = r"^[a-zA-Z\s\-']+$"
PLACE_PATTERN = r"^[a-zA-Z\s\-]+$"
EMAIL_PATTERN = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
PHONE_PATTERN = r"^\+?[1-9]\d{1,14}$"

ARRAY_SECTIONS = ("education", "experience", "skills", "projects", "awards", "certifications")
OBJECT_SECTIONS = ("personal_information", "about")
MAX_SKILLS = 50


def _personal_information(phone_required: bool) -> dict:
    return {
        "first_name": {
            "type": "text",
            "required": True,
            "min_length": 2,
            "max_length": 50,
            "pattern": NAME_PATTERN,
            "message": "First name must be 2-50 characters with only alphabets, spaces, hyphens, and apostrophes",
        },
        "last_name": {
            "type": "text",
            "required": True,
            "min_length": 2,
            "max_length": 50,
            "pattern": NAME_PATTERN,
            "message": "Last name must be 2-50 characters with only alphabets, spaces, hyphens, and apostrophes",
        },
        "email": {
            "type": "email",
            "required": True,
            "max_length": 254,
            "pattern": EMAIL_PATTERN,
            "message": "Email must be valid RFC 5322 format and unique",
        },
        "phone_number": {
            "type": "text",
            "required": phone_required,
            "pattern": PHONE_PATTERN,
            "message": (
                "Phone number is required for professionals in international format"
                if phone_required
                else "Phone number must be in international format"
            ),
        },
        "date_of_birth": {
            "type": "date",
            "required": True,
            "no_future": True,
            "message": "Date of birth must be between 12-125 years old and not in the future",
        },
        "gender": {
            "type": "enum",
            "required": False,
            "values": ["Male", "Female", "Other", "Prefer not to say"],
            "message": "Gender must be one of the predefined options",
        },
        "country": {
            "type": "text",
            "required": True,
            "message": "Country must be a valid ISO 3166-1 country code",
        },
        "state_province": {
            "type": "text",
            "required": True,
            "min_length": 2,
            "max_length": 100,
            "pattern": PLACE_PATTERN,
            "message": "State/Province must be 2-100 characters with only alphabets, spaces, and hyphens",
        },
        "city": {
            "type": "text",
            "required": True,
            "min_length": 2,
            "max_length": 100,
            "pattern": PLACE_PATTERN,
            "message": "City must be 2-100 characters with only alphabets, spaces, and hyphens",
        },
        "postal_code": {
            "type": "text",
            "required": False,
            "min_length": 3,
            "max_length": 10,
            "message": "Postal code must be 3-10 characters",
        },
    }


def _about(status_values: list[str], status_message: str) -> dict:
    return {
        "professional_summary": {
            "type": "rich_text",
            "required": False,
            "min_length": 50,
            "max_length": 2000,
            "message": "Professional summary must be 50-2000 characters",
        },
        "industry": {
            "type": "enum",
            "required": False,
            "values": ["Technology", "Healthcare", "Finance", "Education", "Other"],
            "message": "Industry must be from predefined categories",
        },
        "current_status": {
            "type": "enum",
            "required": False,
            "values": status_values,
            "message": status_message,
        },
    }


EDUCATION = {
    "institution_name": {
        "type": "text",
        "required": False,
        "min_length": 2,
        "max_length": 200,
        "message": "Institution name must be 2-200 characters",
    },
    "degree_type": {
        "type": "enum",
        "required": False,
        "values": ["Bachelor's", "Master's", "PhD", "Diploma", "Certificate"],
        "message": "Degree type must be from predefined categories",
    },
    "field_of_study": {
        "type": "text",
        "required": False,
        "min_length": 2,
        "max_length": 100,
        "message": "Field of study must be 2-100 characters",
    },
    "start_year": {
        "type": "number",
        "required": False,
        "min": 1950,
        "max": "current_year",
        "message": "Start year must be between 1950 and current year",
    },
    "end_year": {
        "type": "number",
        "required": False,
        "min": "start_year",
        "max": "current_year_plus_10",
        "message": "End year must be after start year",
    },
    "gpa_grade": {
        "type": "number",
        "required": False,
        "min": 0,
        "max": 4.0,
        "message": "GPA must be between 0.0 and 4.0",
    },
    "currently_studying": {
        "type": "boolean",
        "required": False,
        "message": "Only one currently studying entry allowed",
    },
}

SKILLS = {
    "skill_name": {
        "type": "text",
        "required": False,
        "min_length": 2,
        "max_length": 50,
        "message": "Skill name must be 2-50 characters, maximum 50 skills allowed",
    },
    "proficiency_level": {
        "type": "enum",
        "required": False,
        "values": ["Beginner", "Intermediate", "Advanced", "Expert"],
        "message": "Proficiency level must be from predefined options",
    },
    "years_of_experience": {
        "type": "number",
        "required": False,
        "min": 0,
        "max": 50,
        "message": "Years of experience must be between 0-50",
    },
}

PROJECTS = {
    "project_title": {
        "type": "text",
        "required": False,
        "min_length": 5,
        "max_length": 100,
        "message": "Project title must be 5-100 characters and unique within profile",
    },
    "description": {
        "type": "rich_text",
        "required": False,
        "min_length": 100,
        "max_length": 2000,
        "message": "Description must be 100-2000 characters",
    },
    "technologies_used": {
        "type": "array",
        "required": False,
        "max_items": 20,
        "message": "Maximum 20 technologies allowed per project",
    },
    "project_url": {
        "type": "url",
        "required": False,
        "message": "Project URL must be a valid URL format",
    },
    "start_date": {
        "type": "date",
        "required": False,
        "no_future": True,
        "message": "Start date must be in MM/YYYY format and not in the future",
    },
    "end_date": {
        "type": "date",
        "required": False,
        "message": "End date must be after start date",
    },
    "project_type": {
        "type": "enum",
        "required": False,
        "values": ["Personal", "Academic", "Professional", "Open Source"],
        "message": "Project type must be from predefined options",
    },
}

EXPERIENCE = {
    "company_name": {
        "type": "text",
        "required": False,
        "min_length": 2,
        "max_length": 100,
        "pattern": r"^[a-zA-Z0-9\s\-\&\.]+$",
        "message": "Company name must be 2-100 characters with alphanumeric and common business symbols",
    },
    "job_title": {
        "type": "text",
        "required": False,
        "min_length": 2,
        "max_length": 100,
        "message": "Job title must be 2-100 characters",
    },
    "employment_type": {
        "type": "enum",
        "required": False,
        "values": ["Full-time", "Part-time", "Contract", "Internship", "Freelance"],
        "message": "Employment type must be from predefined options",
    },
    "start_date": {
        "type": "date",
        "required": False,
        "no_future": True,
        "message": "Start date must be in MM/YYYY format and after age 14",
    },
    "end_date": {
        "type": "date",
        "required": False,
        "no_future": True,
        "message": "End date must be after start date and not in the future",
    },
    "job_description": {
        "type": "rich_text",
        "required": False,
        "min_length": 50,
        "max_length": 2000,
        "message": "Job description must be 50-2000 characters",
    },
    "currently_working": {
        "type": "boolean",
        "required": False,
        "message": "Only one currently working position allowed",
    },
}

AWARDS = {
    "award_name": {
        "type": "text",
        "required": False,
        "min_length": 5,
        "max_length": 100,
        "message": "Award name must be 5-100 characters",
    },
    "issuing_organization": {
        "type": "text",
        "required": False,
        "min_length": 2,
        "max_length": 100,
        "message": "Issuing organization must be 2-100 characters",
    },
    "date_received": {
        "type": "date",
        "required": False,
        "no_future": True,
        "message": "Date received must be in MM/YYYY format and not in the future",
    },
    "description": {
        "type": "text",
        "required": False,
        "min_length": 50,
        "max_length": 500,
        "message": "Description must be 50-500 characters",
    },
    "certificate_url": {
        "type": "url",
        "required": False,
        "message": "Certificate URL must be a valid URL format",
    },
}

CERTIFICATIONS = {
    "certification_name": {
        "type": "text",
        "required": False,
        "min_length": 5,
        "max_length": 100,
        "message": "Certification name must be 5-100 characters",
    },
    "issuing_authority": {
        "type": "text",
        "required": False,
        "min_length": 2,
        "max_length": 100,
        "message": "Issuing authority must be 2-100 characters",
    },
    "license_number": {
        "type": "text",
        "required": False,
        "message": "License number must be alphanumeric and unique within issuing authority",
    },
    "issue_date": {
        "type": "date",
        "required": False,
        "no_future": True,
        "message": "Issue date must be in MM/YYYY format and not in the future",
    },
    "expiration_date": {
        "type": "date",
        "required": False,
        "message": "Expiration date must be after issue date",
    },
    "verification_url": {
        "type": "url",
        "required": False,
        "message": "Verification URL must be a valid URL format",
    },
}

PROFILE_SCHEMA = {
    "student": {
        "personal_information": _personal_information(phone_required=False),
        "about": _about(
            ["Studying", "Looking for internship", "Looking for job"],
            "Current status must be appropriate for students",
        ),
        "education": EDUCATION,
        "skills": SKILLS,
        "projects": PROJECTS,
    },
    "professional": {
        "personal_information": _personal_information(phone_required=True),
        "about": _about(
            ["Employed", "Unemployed", "Freelancing", "Consulting"],
            "Current status must be appropriate for professionals",
        ),
        "experience": EXPERIENCE,
        "education": EDUCATION,
        "skills": SKILLS,
        "projects": PROJECTS,
        "awards": AWARDS,
        "certifications": CERTIFICATIONS,
    },
}

# Resolved schemas; the TTL keeps year-based limits current.
_schema_cache: TTLCache = TTLCache(maxsize=8, ttl=300)


def _resolve_limit(value, year: int):
    if value == "current_year":
        return year
    if value == "current_year_plus_10":
        return year + 10
    if isinstance(value, str):
        # Relative limits such as "start_year" are checked across fields
        return None
    return value


def get_role_schema(role: str) -> dict | None:
    """Return the role's schema with symbolic number limits resolved."""
    if role not in PROFILE_SCHEMA:
        return None
    if role in _schema_cache:
        return _schema_cache[role]

    year = datetime.now().year
    schema = copy.deepcopy(PROFILE_SCHEMA[role])
    for section in schema.values():
        for rules in section.values():
            if rules["type"] == "number":
                rules["min"] = _resolve_limit(rules.get("min"), year)
                rules["max"] = _resolve_limit(rules.get("max"), year)

    _schema_cache[role] = schema
    return schema
