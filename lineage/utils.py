"""
Utility functions for the lineage app.
"""

from typing import Dict, Optional


def summarize_line_ages(line_ages: Dict[int, float]) -> Dict[str, Optional[float]]:
    """
    Summarize a LineAgeMap.

    Args:
        line_ages: Mapping of line number to age in days

    Returns:
        Dict with lines, average_age, oldest_age and newest_age (ages are None
        when no line has blame data)
    """
    if not line_ages:
        return {
            "lines": 0,
            "average_age": None,
            "oldest_age": None,
            "newest_age": None,
        }

    ages = list(line_ages.values())
    return {
        "lines": len(ages),
        "average_age": sum(ages) / len(ages),
        "oldest_age": max(ages),
        "newest_age": min(ages),
    }
