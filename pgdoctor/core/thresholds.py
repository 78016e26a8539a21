"""
Threshold grading shared by all checks.

A value sitting exactly on a boundary always resolves to the more severe side.
"""

from .models import Severity


def grade_high(value: float, warn_at: float, fail_at: float) -> Severity:
    """Grade a metric where higher is worse (usage, bloat, rates)."""
    if value >= fail_at:
        return Severity.FAIL
    if value >= warn_at:
        return Severity.WARN
    return Severity.OK


def grade_low(value: float, warn_at: float, fail_at: float) -> Severity:
    """Grade a metric where lower is worse (hit ratios, headroom)."""
    if value <= fail_at:
        return Severity.FAIL
    if value <= warn_at:
        return Severity.WARN
    return Severity.OK
