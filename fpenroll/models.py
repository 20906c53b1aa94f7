"""Data structures for fpenroll

This module defines the core data classes shared by the coordinator, the voting
step, the imaging backend and the driver shim.
"""

from __future__ import annotations
import enum
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple
import numpy as np

from fpenroll.config import MAX_ATTEMPTS, MIN_ACCEPTABLE_FEATURES, MATCH_THRESHOLD
from fpenroll.errors import ResourceReleasedError


@dataclass
class Minutia:
    """Fingerprint minutia (ridge ending or bifurcation).

    Attributes:
        x: X coordinate (pixels)
        y: Y coordinate (pixels)
        angle: Ridge direction in radians [0, 2π)
        kind: Minutia type ("ending" or "bifurcation")
        quality: Quality score [0.0, 1.0]
    """
    x: float
    y: float
    angle: float
    kind: str
    quality: float = 1.0


class ImageFlag(enum.Flag):
    """Orientation/polarity flags a sensor reports alongside a raw frame."""
    NONE = 0
    V_FLIPPED = enum.auto()
    H_FLIPPED = enum.auto()
    COLORS_INVERTED = enum.auto()


@dataclass(eq=False)
class RawSample:
    """Raw frame from one swipe.

    The coordinator owns every sample it holds until it is either attached to
    the returned outcome or released.

    Attributes:
        data: Grayscale frame (uint8, height x width); None once released
        flags: Orientation/polarity flags still to be standardized away
        attempt: 1-based capture attempt that produced the sample
        source: Optional label (file name, device id) for diagnostics
        standardized: Whether standardization has run
    """
    data: Optional[np.ndarray]
    flags: ImageFlag = ImageFlag.NONE
    attempt: int = 0
    source: Optional[str] = None
    standardized: bool = False
    _released: bool = field(default=False, init=False, repr=False)

    @property
    def released(self) -> bool:
        return self._released

    @property
    def width(self) -> int:
        return 0 if self.data is None else int(self.data.shape[1])

    @property
    def height(self) -> int:
        return 0 if self.data is None else int(self.data.shape[0])

    def release(self) -> None:
        """Drop the frame buffer.

        Raises:
            ResourceReleasedError: If the sample was already released
        """
        if self._released:
            raise ResourceReleasedError(f"Sample from attempt {self.attempt} released twice")
        self._released = True
        self.data = None


@dataclass(eq=False)
class Template:
    """Extracted, comparable representation of one sample.

    Attributes:
        payload: Extractor-specific comparable data (opaque to the coordinator)
        minutiae: Minutiae for extractors that expose them; never read by the
            coordinator, cleared on release
        attempt: 1-based capture attempt the template was extracted from
    """
    payload: Any = None
    minutiae: Optional[List[Minutia]] = None
    attempt: int = 0
    _released: bool = field(default=False, init=False, repr=False)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Drop the payload.

        Raises:
            ResourceReleasedError: If the template was already released
        """
        if self._released:
            raise ResourceReleasedError(f"Template from attempt {self.attempt} released twice")
        self._released = True
        self.payload = None
        self.minutiae = None


class AttemptStatus(enum.Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class CaptureAttempt:
    """One pass through the capture → standardize → extract → gate sequence."""
    number: int
    status: AttemptStatus
    sample: Optional[RawSample] = None
    template: Optional[Template] = None
    feature_count: Optional[int] = None
    reason: Optional[str] = None

    @property
    def accepted(self) -> bool:
        return self.status is AttemptStatus.ACCEPTED


class OutcomeKind(enum.Enum):
    COMPLETED = "completed"
    RETRY = "retry"
    FAILED = "failed"


@dataclass
class EnrollmentOutcome:
    """Terminal result of one enrollment call.

    Ownership of ``template`` and ``sample`` passes to the caller.

    Attributes:
        kind: Completed, Retry or Failed
        template: Winning template (Completed only)
        sample: Winner's sample (Completed) or first accepted sample (Retry)
        attempts: Number of capture attempts made
        accepted: Number of accepted samples
        scores: Pairwise scores (s01, s12, s20) when voting ran
        winner: Winning slot index when voting picked one
        message: User-facing summary
    """
    kind: OutcomeKind
    template: Optional[Template] = None
    sample: Optional[RawSample] = None
    attempts: int = 0
    accepted: int = 0
    scores: Optional[Tuple[float, float, float]] = None
    winner: Optional[int] = None
    message: str = ""

    @classmethod
    def completed(cls, template: Template, sample: Optional[RawSample] = None, **details) -> "EnrollmentOutcome":
        return cls(OutcomeKind.COMPLETED, template=template, sample=sample, **details)

    @classmethod
    def retry(cls, sample: Optional[RawSample] = None, **details) -> "EnrollmentOutcome":
        return cls(OutcomeKind.RETRY, sample=sample, **details)

    @classmethod
    def failed(cls, **details) -> "EnrollmentOutcome":
        return cls(OutcomeKind.FAILED, **details)

    @property
    def is_completed(self) -> bool:
        return self.kind is OutcomeKind.COMPLETED


@dataclass
class EnrollmentSettings:
    """Tunable enrollment parameters.

    Attributes:
        max_attempts: Capture attempts allowed per call
        min_features: Minimum feature count for a sample to be accepted
        match_threshold: Minimum supporting score for the voting winner
    """
    max_attempts: int = MAX_ATTEMPTS
    min_features: int = MIN_ACCEPTABLE_FEATURES
    match_threshold: float = MATCH_THRESHOLD

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if self.max_attempts <= 0:
            raise ValueError(f"max_attempts must be positive, got {self.max_attempts}")

        if self.min_features < 0:
            raise ValueError(f"min_features must be >= 0, got {self.min_features}")

        if self.match_threshold < 0:
            raise ValueError(f"match_threshold must be >= 0, got {self.match_threshold}")
