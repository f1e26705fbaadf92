"""Field normalization for loosely-structured application CSVs."""

import re
from datetime import date
from types import MappingProxyType
from typing import Any, Optional

from .models import ApplicationStatus

# Column names after lower-casing and stripping non-alphanumerics
HEADER_SYNONYMS = MappingProxyType({
    # Company
    "company": "company",
    "companyname": "company",
    "employer": "company",
    "organization": "company",
    "firm": "company",
    # Role
    "role": "role",
    "rolename": "role",
    "position": "role",
    "job": "role",
    "title": "role",
    "jobtitle": "role",
    # Date applied
    "dateapplied": "dateApplied",
    "applieddate": "dateApplied",
    "applicationdate": "dateApplied",
    "submitteddate": "dateApplied",
    "date": "dateApplied",
    # Status
    "status": "status",
    "statusname": "status",
    "applicationstatus": "status",
    "currentstatus": "status",
    "state": "status",
    # Visa sponsorship
    "visasponsorship": "visaSponsorship",
    "visa": "visaSponsorship",
    "sponsor": "visaSponsorship",
    "h1b": "visaSponsorship",
    "workpermit": "visaSponsorship",
    # Notes
    "notes": "notes",
    "comments": "notes",
    "description": "notes",
    "additionalinfo": "notes",
    # Resume link
    "resumeurl": "resumeUrl",
    "resume": "resumeUrl",
    "resumelink": "resumeUrl",
    # Recognized but not imported
    "timestamp": "timestamp",
    "created": "timestamp",
    "createdat": "timestamp",
    "datecreated": "timestamp",
    "id": "id",
})

STATUS_SYNONYMS = MappingProxyType({
    # Applied
    "applied": ApplicationStatus.APPLIED,
    "application": ApplicationStatus.APPLIED,
    "submitted": ApplicationStatus.APPLIED,
    "sent": ApplicationStatus.APPLIED,
    # Phone screen
    "phone screen": ApplicationStatus.PHONE_SCREEN,
    "phonescreen": ApplicationStatus.PHONE_SCREEN,
    "phone": ApplicationStatus.PHONE_SCREEN,
    "screening": ApplicationStatus.PHONE_SCREEN,
    "screen": ApplicationStatus.PHONE_SCREEN,
    "call": ApplicationStatus.PHONE_SCREEN,
    "interview call": ApplicationStatus.PHONE_SCREEN,
    # Technical interview
    "technical interview": ApplicationStatus.TECHNICAL_INTERVIEW,
    "technical": ApplicationStatus.TECHNICAL_INTERVIEW,
    "tech interview": ApplicationStatus.TECHNICAL_INTERVIEW,
    "coding interview": ApplicationStatus.TECHNICAL_INTERVIEW,
    "tech screen": ApplicationStatus.TECHNICAL_INTERVIEW,
    "technical screen": ApplicationStatus.TECHNICAL_INTERVIEW,
    # Final round
    "final round": ApplicationStatus.FINAL_ROUND,
    "final": ApplicationStatus.FINAL_ROUND,
    "final interview": ApplicationStatus.FINAL_ROUND,
    "onsite": ApplicationStatus.FINAL_ROUND,
    "on-site": ApplicationStatus.FINAL_ROUND,
    "in-person": ApplicationStatus.FINAL_ROUND,
    "office": ApplicationStatus.FINAL_ROUND,
    # Offer
    "offer": ApplicationStatus.OFFER,
    "offered": ApplicationStatus.OFFER,
    "accepted": ApplicationStatus.OFFER,
    "hired": ApplicationStatus.OFFER,
    # Rejected
    "rejected": ApplicationStatus.REJECTED,
    "declined": ApplicationStatus.REJECTED,
    "denied": ApplicationStatus.REJECTED,
    "no": ApplicationStatus.REJECTED,
    "failed": ApplicationStatus.REJECTED,
})

TRUTHY_TOKENS = frozenset({"true", "yes", "y", "1", "checked", "on", "enabled"})

# Companies that commonly sponsor visas, used when a row leaves sponsorship blank
VISA_SPONSOR_COMPANIES = frozenset({
    "google", "microsoft", "amazon", "meta", "apple", "netflix",
    "linkedin", "twitter", "x", "salesforce", "oracle", "adobe",
    "uber", "lyft", "airbnb", "stripe", "square", "paypal",
    "shopify", "slack", "zoom", "atlassian", "dropbox", "box",
    "snowflake", "databricks", "confluent", "mongodb", "elastic",
    "docker", "kubernetes", "hashicorp", "datadog", "new relic",
})

_NON_ALNUM = re.compile(r"[^a-z0-9]")

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_SLASH_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_DASH_DATE = re.compile(r"^(\d{1,2})-(\d{1,2})-(\d{4})$")

# Tried in order. Each entry is (pattern, order of the captured groups).
# Slash dates are read month-first and fall back to day-first; dash dates are
# always read day-first. Existing exports depend on this order.
DATE_PATTERNS = (
    (_ISO_DATE, ("year", "month", "day")),      # YYYY-MM-DD
    (_SLASH_DATE, ("month", "day", "year")),    # MM/DD/YYYY
    (_SLASH_DATE, ("day", "month", "year")),    # DD/MM/YYYY
    (_DASH_DATE, ("day", "month", "year")),     # MM-DD-YYYY
    (_DASH_DATE, ("day", "month", "year")),     # DD-MM-YYYY
)


def normalize_header(header: str) -> str:
    """Map a raw column header onto a canonical field name.

    Unknown headers are returned in their stripped, lower-cased form and are
    ignored by the validator.
    """
    normalized = _NON_ALNUM.sub("", str(header).lower())
    return HEADER_SYNONYMS.get(normalized, normalized)


def _build_date(year: int, month: int, day: int) -> Optional[date]:
    try:
        parsed = date(year, month, day)
    except ValueError:
        return None
    if (parsed.year, parsed.month, parsed.day) != (year, month, day):
        return None
    return parsed


def parse_date(value: Any) -> Optional[str]:
    """Parse a date string into canonical YYYY-MM-DD, or None."""
    if not value or not isinstance(value, str):
        return None

    trimmed = value.strip()

    for pattern, order in DATE_PATTERNS:
        match = pattern.match(trimmed)
        if not match:
            continue
        parts = dict(zip(order, (int(group) for group in match.groups())))
        parsed = _build_date(parts["year"], parts["month"], parts["day"])
        if parsed is not None:
            return parsed.isoformat()

    return None


def normalize_status(value: Any) -> Optional[ApplicationStatus]:
    """Map a free-text status onto one of the canonical statuses."""
    if not value or not isinstance(value, str):
        return None
    return STATUS_SYNONYMS.get(value.lower().strip())


def parse_boolean(value: Any) -> bool:
    """Interpret checkbox-like values. Never raises."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if not isinstance(value, str):
        return bool(value)
    return value.lower().strip() in TRUTHY_TOKENS


def is_known_sponsor(company: Any) -> bool:
    if not isinstance(company, str):
        return False
    return company.lower().strip() in VISA_SPONSOR_COMPANIES


def resolve_visa_sponsorship(value: Any, company: Any) -> bool:
    """Explicit sponsorship value if present, else the known-sponsor fallback."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return is_known_sponsor(company)
    return parse_boolean(value)
