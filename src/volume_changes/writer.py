"""
JSON serialization of phase transition statistics.
"""

import json
import pathlib
import typing

from .errors import ParseError
from .stats import PhaseTransitionStat

DEFAULT_RESULTS_PATH = "volume_changes_stats.json"


def write_stats_json(
    stats: typing.Iterable[PhaseTransitionStat],
    results_path: typing.Union[str, pathlib.Path],
) -> pathlib.Path:
    """Write the statistics as a pretty-printed JSON array and return the path."""
    out = pathlib.Path(results_path)
    if out.parent and not out.parent.exists():
        out.parent.mkdir(parents=True, exist_ok=True)
    with open(out, "w", encoding="utf-8") as out_f:
        # as_dict already maps NaN/inf to None, so the document stays valid JSON
        json.dump([stat.as_dict() for stat in stats], out_f, indent=2, allow_nan=False)
        out_f.write("\n")
    return out


def read_stats_json(results_path: typing.Union[str, pathlib.Path]) -> list[PhaseTransitionStat]:
    """Read back a document written by write_stats_json."""
    try:
        with open(results_path, encoding="utf-8") as in_f:
            payload = json.load(in_f)
    except (OSError, json.JSONDecodeError) as e:
        raise ParseError(f"Failed to read statistics from {str(results_path)!r}: {e}") from e
    if not isinstance(payload, list):
        raise ParseError(f"Expected a JSON array in {str(results_path)!r}")
    try:
        return [PhaseTransitionStat.from_dict(item) for item in payload]
    except (KeyError, TypeError, ValueError) as e:
        raise ParseError(f"Malformed statistics record in {str(results_path)!r}: {e}") from e
