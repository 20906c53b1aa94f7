"""Exception types for fpenroll.

Capture and extraction errors are attempt-local: the coordinator absorbs them
and never lets them cross ``EnrollmentCoordinator.enroll``.
"""

from __future__ import annotations
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from fpenroll.models import RawSample


class EnrollmentError(Exception):
    """Base class for all fpenroll errors."""


class CaptureError(EnrollmentError):
    """A single swipe could not be acquired.

    Attributes:
        partial: Sample acquired before the failure, if any. The coordinator
            owns it and releases it.
    """

    def __init__(self, message: str, partial: Optional["RawSample"] = None) -> None:
        super().__init__(message)
        self.partial = partial


class ExtractionError(EnrollmentError):
    """Feature extraction could not produce a template from a sample."""


class ConsensusTieError(EnrollmentError):
    """All three pairwise scores are equal, so no sample can be singled out."""


class ResourceReleasedError(EnrollmentError):
    """A sample or template was used or released after being released."""
