"""
Enrollments Domain

A user's membership in a training category. Active enrollments are the
audience for that category's schedule and slot announcements.
"""

from .router import router

__all__ = ["router"]
