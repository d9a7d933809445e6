"""Readiness detection from the output of `fastly compute serve`."""

# As of Fastly CLI 10.2.4 / Viceroy 0.6.1 these appear on stdout, in this
# order, with --verbose, --quiet, or neither. Unrelated log lines from nested
# processes are interleaved between them.
READY_MARKERS: tuple[str, ...] = (
    "Running local server",
    "INFO: Command output:",
    "INFO Listening on",
)


class ReadinessDetector:
    """Ordered stage matcher over output lines.

    Each marker must be seen, in order, on its own line. A line only advances
    the stage when it carries the marker for the current stage.
    """

    def __init__(self, markers: tuple[str, ...] = READY_MARKERS):
        self.markers = tuple(markers)
        self.stage = 0

    @property
    def ready(self) -> bool:
        return self.stage == len(self.markers)

    def feed(self, line: str) -> bool:
        """Consume one line. Returns True only on the transition to ready."""
        if self.ready:
            return False
        if self.markers[self.stage] in line:
            self.stage += 1
            return self.ready
        return False
