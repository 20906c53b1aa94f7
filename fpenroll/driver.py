"""Driver shim for fpenroll

Maps enrollment outcomes to the status codes an image-driver framework
expects, manages the capture service lifecycle and loads collaborator
backends from ``module:attribute`` references.
"""

from __future__ import annotations
import enum
import importlib
from dataclasses import dataclass
from typing import Any, Optional

from fpenroll.collaborators import CaptureService, Comparator, FeatureExtractor, Notifier
from fpenroll.coordinator import EnrollmentCoordinator
from fpenroll.logger import get_logger
from fpenroll.models import EnrollmentOutcome, EnrollmentSettings, OutcomeKind, RawSample, Template


logger = get_logger("driver")


class EnrollResult(enum.IntEnum):
    """Enrollment status codes of the hosting framework.

    Mirrors the full framework enum. FAIL and PASS belong to verification and
    are never returned by ``status_for``.
    """
    ERROR = -1
    COMPLETE = 1
    FAIL = 2
    PASS = 3
    RETRY = 100


_STATUS_BY_KIND = {
    OutcomeKind.COMPLETED: EnrollResult.COMPLETE,
    OutcomeKind.RETRY: EnrollResult.RETRY,
    OutcomeKind.FAILED: EnrollResult.ERROR,
}


def status_for(outcome: EnrollmentOutcome) -> EnrollResult:
    """Framework status code for an outcome (Failed reports a plain error)."""
    return _STATUS_BY_KIND[outcome.kind]


@dataclass
class EnrollResponse:
    """What the framework receives from one enroll call."""
    status: EnrollResult
    template: Optional[Template] = None
    image: Optional[RawSample] = None
    outcome: Optional[EnrollmentOutcome] = None


def resolve_backend(reference: str) -> Any:
    """Import ``package.module:attribute`` and return the attribute.

    Args:
        reference: Dotted module path and attribute name separated by ':'

    Returns:
        The referenced object

    Raises:
        ValueError: If the reference is malformed
        ImportError: If the module cannot be imported
        AttributeError: If the attribute does not exist
    """
    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        raise ValueError(f"Backend reference must look like 'package.module:attribute', got {reference!r}")

    target: Any = importlib.import_module(module_name)
    for part in attribute.split("."):
        target = getattr(target, part)
    return target


def build_backend(reference: str) -> Any:
    """Resolve a backend reference; classes and factories are called with no arguments."""
    target = resolve_backend(reference)
    return target() if callable(target) else target


# ---------------------------------------------------------------------------
# EnrollDriver


class EnrollDriver:
    """Single-stage enrollment driver around an EnrollmentCoordinator.

    The whole three-swipe procedure runs inside one framework stage.
    Capture services exposing ``open()``/``close()`` are opened on entry
    (which may block until the sensor is ready) and closed on exit.
    """

    NR_ENROLL_STAGES = 1

    def __init__(
        self,
        capture: CaptureService,
        extractor: FeatureExtractor,
        comparator: Comparator,
        notifier: Optional[Notifier] = None,
        settings: Optional[EnrollmentSettings] = None
    ) -> None:
        self.coordinator = EnrollmentCoordinator(capture, extractor, comparator, notifier, settings)
        self._opened = False

    def open(self) -> None:
        opener = getattr(self.coordinator.capture, "open", None)
        if callable(opener) and not self._opened:
            opener()
            logger.debug("Capture service opened")
        self._opened = True

    def close(self) -> None:
        closer = getattr(self.coordinator.capture, "close", None)
        if callable(closer) and self._opened:
            closer()
            logger.debug("Capture service closed")
        self._opened = False

    def __enter__(self) -> "EnrollDriver":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def enroll(self, stage: int = 0, *, want_image: bool = True) -> EnrollResponse:
        """Run the enrollment for ``stage``.

        Args:
            stage: Framework stage index (only stage 0 exists)
            want_image: Hand back the raw image alongside the template

        Raises:
            ValueError: If ``stage`` is out of range
        """
        if not 0 <= stage < self.NR_ENROLL_STAGES:
            raise ValueError(f"Stage {stage} out of range (driver has {self.NR_ENROLL_STAGES})")

        outcome = self.coordinator.enroll(return_sample=want_image)
        return EnrollResponse(
            status=status_for(outcome),
            template=outcome.template,
            image=outcome.sample,
            outcome=outcome
        )
