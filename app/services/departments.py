# app/services/departments.py

import re
from typing import Any, Dict, List

ALL_DEPARTMENTS = {"key": "all", "label": "All Departments"}

DEFAULT_DEPARTMENTS = [
    ALL_DEPARTMENTS,
    {"key": "finance", "label": "Finance & Accounting"},
    {"key": "marketing", "label": "Marketing"},
    {"key": "technology", "label": "Technology"},
    {"key": "operations", "label": "Operations"},
    {"key": "other", "label": "Other"},
]


def normalize_department_key(value: str) -> str:
    key = value.strip().lower()
    key = re.sub(r"\s+", "-", key)
    key = re.sub(r"[^a-z0-9-]", "", key)
    key = re.sub(r"-+", "-", key)
    return key.strip("-")


def humanize_department_key(key: str) -> str:
    """'customer-success' -> 'Customer Success'"""
    return " ".join(part[:1].upper() + part[1:] for part in key.split("-") if part)


def normalize_departments(source: List[Any], include_all: bool = False) -> List[Dict[str, str]]:
    entries = source if source else DEFAULT_DEPARTMENTS
    normalized: Dict[str, Dict[str, str]] = {}

    for department in entries:
        if not isinstance(department, dict) or not isinstance(department.get("key"), str):
            continue
        key = normalize_department_key(department["key"])
        if not key or key in normalized:
            continue
        if key == "all" and not include_all:
            continue

        label = department.get("label")
        if isinstance(label, str) and label.strip():
            label = label.strip()
        else:
            label = humanize_department_key(key)

        normalized[key] = {"key": key, "label": label}

    options = list(normalized.values())
    if include_all and "all" not in normalized:
        options.insert(0, dict(ALL_DEPARTMENTS))
    return options


def get_departments(content: Dict[str, Any], include_all: bool = False) -> List[Dict[str, str]]:
    """Departamentos del content-data, normalizados y sin duplicados."""
    raw = content.get("departments")
    return normalize_departments(raw if isinstance(raw, list) else [], include_all=include_all)


def is_valid_department_key(content: Dict[str, Any], key: str, include_all: bool = False) -> bool:
    normalized = normalize_department_key(key)
    if not normalized:
        return False
    return any(d["key"] == normalized for d in get_departments(content, include_all=include_all))


def get_department_label(content: Dict[str, Any], key: str) -> str:
    normalized = normalize_department_key(key)
    if not normalized:
        return ""
    for department in get_departments(content, include_all=True):
        if department["key"] == normalized:
            return department["label"]
    return humanize_department_key(normalized)
