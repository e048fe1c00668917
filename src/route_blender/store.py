"""Read and write the segment list artifact produced by the offline analysis."""

import json
import logging
from pathlib import Path

from route_blender.models import Segment

logger = logging.getLogger(__name__)


class SegmentFileError(ValueError):
    """Segment file exists but cannot be decoded into segments."""


def save_segments(segments: list[Segment], path: str | Path) -> Path:
    """Write segments as a JSON array, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        json.dump([s.to_dict() for s in segments], f, indent=2)
    logger.info("Saved %d segments to %s", len(segments), path)
    return path


def load_segments(path: str | Path) -> list[Segment]:
    """Load segments written by save_segments, sorted by order.

    Raises:
        FileNotFoundError: If the file does not exist.
        SegmentFileError: If the file is not a valid segment list.
    """
    path = Path(path)
    with path.open() as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise SegmentFileError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, list):
        raise SegmentFileError(f"Expected a list of segments in {path}")
    try:
        segments = [Segment.from_dict(item) for item in data]
    except (KeyError, TypeError, ValueError) as e:
        raise SegmentFileError(f"Invalid segment in {path}: {e}") from e

    segments.sort(key=lambda s: s.order)
    logger.debug("Loaded %d segments from %s", len(segments), path)
    return segments
