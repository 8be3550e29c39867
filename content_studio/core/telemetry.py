import logging
from collections import Counter

logger = logging.getLogger(__name__)

FALLBACK_INSTRUCTIONS_USED = "fallback_instructions_used"
PATTERN_EXTRACTION_FAILED = "pattern_extraction_failed"
PATTERN_LOOKUP_FAILED = "pattern_lookup_failed"
GENERAL_PATTERNS_USED = "general_patterns_used"
AD_VARIATION_INVALID = "ad_variation_invalid"
ASSET_UPLOAD_FAILED = "asset_upload_failed"
ASSET_EXTRACTION_FAILED = "asset_extraction_failed"


class EventRecorder:
    """Counts degraded-path events so they are visible beyond the log stream."""

    def __init__(self):
        self._counts: Counter = Counter()

    def increment(self, event: str, **labels) -> None:
        self._counts[event] += 1
        label_str = ", ".join(f"{k}={v}" for k, v in sorted(labels.items()))
        logger.info(f"telemetry event={event} {label_str}".rstrip())

    def count(self, event: str) -> int:
        return self._counts[event]

    def snapshot(self) -> dict[str, int]:
        return dict(self._counts)

    def reset(self) -> None:
        self._counts.clear()


# Process-wide default; services accept their own recorder for isolation in tests.
events = EventRecorder()
