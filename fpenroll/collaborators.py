"""Collaborator interfaces consumed by the enrollment coordinator.

Capture, extraction, comparison and notification are supplied by the hosting
layer. The coordinator only relies on the methods declared here.
"""

from __future__ import annotations
from typing import Protocol, runtime_checkable

from fpenroll.models import RawSample, Template


@runtime_checkable
class CaptureService(Protocol):
    """Blocking source of raw swipes."""

    def capture(self, is_first_attempt: bool) -> RawSample:
        """Acquire one sample.

        Args:
            is_first_attempt: True for the first swipe of an enrollment call

        Returns:
            RawSample owned by the caller

        Raises:
            CaptureError: If no usable frame was acquired
        """
        ...

    def standardize(self, sample: RawSample) -> None:
        """Normalize ``sample`` in place before extraction."""
        ...


@runtime_checkable
class FeatureExtractor(Protocol):
    """Turns a standardized sample into a comparable template."""

    def extract(self, sample: RawSample) -> Template:
        """Extract a template; the sample stays owned by the caller.

        Raises:
            ExtractionError: If no template can be built
        """
        ...

    def feature_count(self, template: Template) -> int:
        ...


@runtime_checkable
class Comparator(Protocol):
    """Symmetric similarity between two templates (0-100 scale)."""

    def compare(self, a: Template, b: Template) -> float:
        ...


@runtime_checkable
class Notifier(Protocol):
    """Best-effort user-facing progress messages."""

    def notify(self, message: str) -> None:
        ...
