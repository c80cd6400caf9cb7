"""JSON persistence of approach statistics snapshots."""
import json
from pathlib import Path

from .analysis import ApproachStatistics


def dumps_snapshot(stats: ApproachStatistics, elapsed_seconds: float = 0.0) -> str:
    """Serialise ``stats`` to a JSON string.

    Floats are written with their shortest round-trip representation and the
    ``inf`` sentinels of untouched pairs as ``Infinity``/``-Infinity``.
    """
    return json.dumps(stats.to_snapshot(elapsed_seconds), indent=2)


def loads_snapshot(text: str):
    """Parse a JSON snapshot; returns ``(stats, elapsed_seconds)``."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Snapshot is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("Snapshot must be a JSON object")
    stats = ApproachStatistics.from_snapshot(data)
    return stats, float(data.get("elapsed_seconds", 0.0))


def save_snapshot(filepath, stats: ApproachStatistics, elapsed_seconds: float = 0.0):
    """Write a snapshot of ``stats`` to ``filepath``."""
    Path(filepath).write_text(dumps_snapshot(stats, elapsed_seconds))


def load_snapshot(filepath):
    """Load a snapshot written by :func:`save_snapshot`."""
    return loads_snapshot(Path(filepath).read_text())
