"""Shared validation utilities"""

import re
from typing import Optional

from ..config import CONFLICT_DOMAINS


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def known_categories() -> set[str]:
    """Every category listed in the configured conflict domains"""
    return {category for members in CONFLICT_DOMAINS.values() for category in members}


def validate_category(category: Optional[str]) -> Optional[str]:
    """
    Validate that a category belongs to the configured vocabulary.

    Raises:
        ValueError: If the category is unknown
    """
    if category is None:
        return category

    category = category.strip()
    if category not in known_categories():
        allowed = ", ".join(sorted(known_categories()))
        raise ValueError(f"Unknown category '{category}'. Allowed: {allowed}")

    return category


def validate_day_of_week(day: Optional[int]) -> Optional[int]:
    """0 = Sunday ... 6 = Saturday"""
    if day is None:
        return day
    if not 0 <= day <= 6:
        raise ValueError("dayOfWeek must be between 0 (Sunday) and 6 (Saturday)")
    return day
