"""Hardware detection results carried from the detecting screen.

Probing the system is done by an external collaborator. This module holds
the summary that collaborator produces, a short-lived cache so stepping
back to the detecting screen does not probe again, and the detector that
ties the two together.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Callable

from driver_wizard.errors import DetectionError

LEGACY_ARCHITECTURES = ("Kepler", "Maxwell", "Fermi")


@dataclass(frozen=True)
class HardwareSummary:
    """System detection results.

    Attributes:
        gpus: Names of detected NVIDIA GPUs.
        architecture: Architecture of the primary GPU, or None if unknown.
        driver_version: Installed NVIDIA driver version, or None.
        nouveau_loaded: Whether the open-source driver is currently loaded.
        kernel_version: Running kernel release, or None if not found.
        distribution: Distribution name, or None if not found.
        detection_time_ms: Time taken for detection in milliseconds.
    """

    gpus: tuple[str, ...] = ()
    architecture: str | None = None
    driver_version: str | None = None
    nouveau_loaded: bool = False
    kernel_version: str | None = None
    distribution: str | None = None
    detection_time_ms: float = 0.0

    def has_nvidia_gpu(self) -> bool:
        return len(self.gpus) > 0

    def has_driver_installed(self) -> bool:
        return self.driver_version is not None

    def is_legacy_architecture(self) -> bool:
        return self.architecture in LEGACY_ARCHITECTURES

    def get_primary_gpu_or_default(self, default: str = "No NVIDIA GPU") -> str:
        """Get the first GPU name or return default.

        Args:
            default: Value used when no GPU was detected.

        Returns:
            Primary GPU name or default string.
        """
        return self.gpus[0] if self.gpus else default

    def get_driver_version_or_default(self, default: str = "none") -> str:
        """Get the installed driver version or return default."""
        return self.driver_version if self.driver_version else default

    def get_kernel_version_or_default(self, default: str = "unknown") -> str:
        return self.kernel_version if self.kernel_version else default


@dataclass
class CachedDetection:
    """Cached detection result with timestamp.

    Attributes:
        result: Cached detection result.
        timestamp: When this result was cached.
    """

    result: HardwareSummary
    timestamp: datetime = field(default_factory=datetime.now)

    def is_stale(self, max_age_seconds: int = 60) -> bool:
        """Check if cached result is stale.

        Args:
            max_age_seconds: Maximum age in seconds before cache is stale.

        Returns:
            True if cached result is older than max_age_seconds.
        """
        age = datetime.now() - self.timestamp
        return age > timedelta(seconds=max_age_seconds)


class DetectionCache:
    """In-memory cache holding the latest detection result of a session.

    Results expire after max_age_seconds so a wizard left open for a while
    probes again instead of showing outdated hardware state.
    """

    def __init__(self, max_age_seconds: int = 60) -> None:
        self._entry: CachedDetection | None = None
        self._max_age_seconds = max_age_seconds

    def get(self) -> HardwareSummary | None:
        """Get the cached result if present and not stale."""
        if self._entry is None:
            return None

        if self._entry.is_stale(self._max_age_seconds):
            self._entry = None
            return None

        return self._entry.result

    def set(self, result: HardwareSummary) -> None:
        self._entry = CachedDetection(result=result)

    def clear(self) -> None:
        self._entry = None


# A probe inspects the system and returns a summary, raising on failure
Probe = Callable[[], HardwareSummary]


class HardwareDetector:
    """Runs a detection probe with timing and caching.

    Example:
        detector = HardwareDetector(probe=my_probe)
        summary = detector.detect()
    """

    def __init__(self, probe: Probe, cache_enabled: bool = True) -> None:
        """Initialize hardware detector.

        Args:
            probe: Callable performing the actual system inspection.
            cache_enabled: Whether to reuse recent results.
        """
        self._probe = probe
        self._cache = DetectionCache() if cache_enabled else None

    def detect(self) -> HardwareSummary:
        """Return a hardware summary, probing only when needed.

        Raises:
            DetectionError: If the probe fails.
        """
        if self._cache is not None:
            cached = self._cache.get()
            if cached is not None:
                return cached

        start = time.perf_counter()
        try:
            summary = self._probe()
        except OSError as e:
            raise DetectionError(f"Hardware probe failed: {e}") from e
        elapsed_ms = (time.perf_counter() - start) * 1000
        summary = replace(summary, detection_time_ms=elapsed_ms)

        if self._cache is not None:
            self._cache.set(summary)
        return summary

    def invalidate(self) -> None:
        """Forget any cached result so the next detect() probes again."""
        if self._cache is not None:
            self._cache.clear()


def sample_probe() -> HardwareSummary:
    """Probe stand-in that reports a typical single-GPU workstation."""
    return HardwareSummary(
        gpus=("NVIDIA GeForce RTX 3070",),
        architecture="Ampere",
        driver_version=None,
        nouveau_loaded=True,
        kernel_version="6.8.0-45-generic",
        distribution="Ubuntu 24.04 LTS",
    )
