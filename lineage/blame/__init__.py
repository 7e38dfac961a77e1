from .parser import BlameParser, BlameRecord, LineAgeMap, parse_blame_output
from .runner import BlameOutput, BlameUnavailable, blame_path, get_line_ages, run_blame

__all__ = (
    "BlameOutput",
    "BlameParser",
    "BlameRecord",
    "BlameUnavailable",
    "LineAgeMap",
    "blame_path",
    "get_line_ages",
    "parse_blame_output",
    "run_blame",
)
