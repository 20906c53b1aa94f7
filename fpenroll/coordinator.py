"""Enrollment coordinator for fpenroll

This module contains:
- EnrollmentState: states of one enrollment run
- EnrollmentRun: explicit state machine (Collecting → Voting → Completed/Retry/Failed)
- EnrollmentCoordinator: entry point wiring the injected collaborators

PIPELINE:
1. Collecting: capture → standardize → extract → feature-count gate, at most
   MAX_ATTEMPTS captures, stops once REQUIRED_GOOD_SAMPLES are accepted
2. Voting: pairwise scores between the three accepted samples, odd-sample-out
   winner, match-threshold gate
3. Terminal: Completed (winner template), Retry (first accepted sample kept for
   diagnostics) or Failed (nothing accepted)

Every sample and template the run holds is either handed to the caller in the
outcome or released before the run reaches a terminal state.
"""

from __future__ import annotations
import enum
from typing import Callable, Dict, List, Optional

from fpenroll.collaborators import CaptureService, Comparator, FeatureExtractor, Notifier
from fpenroll.config import REQUIRED_GOOD_SAMPLES
from fpenroll.errors import CaptureError, ConsensusTieError, ExtractionError
from fpenroll.logger import get_logger, log_enrollment, log_error
from fpenroll.models import (
    AttemptStatus, CaptureAttempt, EnrollmentOutcome, EnrollmentSettings, RawSample, Template
)
from fpenroll.notifications import (
    MSG_BAD_SWIPE, MSG_INCONSISTENT_IMAGES, MSG_NOT_ENOUGH_SWIPES, MSG_SUCCESS,
    deliver, good_swipes_message
)
from fpenroll.voting import PairwiseScores, cast_vote, score_triangle


logger = get_logger("coordinator")


class EnrollmentState(enum.Enum):
    COLLECTING = "collecting"
    VOTING = "voting"
    COMPLETED = "completed"
    RETRY = "retry"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (EnrollmentState.COMPLETED, EnrollmentState.RETRY, EnrollmentState.FAILED)


def _discard(*resources) -> None:
    for resource in resources:
        if resource is not None and not resource.released:
            resource.release()


# ---------------------------------------------------------------------------
# EnrollmentRun: one call's state machine


class EnrollmentRun:
    """State of a single enrollment call.

    ``step()`` performs exactly one transition. ``COLLECTING`` loops on itself
    once per capture attempt until the attempt budget is spent or enough good
    samples are held.

    Attributes:
        state: Current state
        attempts: Capture attempts made so far
        slots: Accepted attempts, in acceptance order (at most three)
        history: Every attempt made, accepted or rejected
        outcome: Terminal result, set once a terminal state is reached
    """

    def __init__(
        self,
        capture: CaptureService,
        extractor: FeatureExtractor,
        comparator: Comparator,
        notifier: Optional[Notifier],
        settings: EnrollmentSettings,
        *,
        return_sample: bool = True
    ) -> None:
        self.capture = capture
        self.extractor = extractor
        self.comparator = comparator
        self.notifier = notifier
        self.settings = settings
        self.return_sample = return_sample

        self.state = EnrollmentState.COLLECTING
        self.attempts = 0
        self.slots: List[CaptureAttempt] = []
        self.history: List[CaptureAttempt] = []
        self.outcome: Optional[EnrollmentOutcome] = None

        self._handlers: Dict[EnrollmentState, Callable[[], EnrollmentState]] = {
            EnrollmentState.COLLECTING: self._collect,
            EnrollmentState.VOTING: self._vote,
        }

    @property
    def accepted(self) -> int:
        return len(self.slots)

    @property
    def finished(self) -> bool:
        return self.state.terminal

    def step(self) -> EnrollmentState:
        """Advance by one transition and return the new state.

        Raises:
            RuntimeError: If the run already reached a terminal state
        """
        if self.finished:
            raise RuntimeError(f"Enrollment run already finished ({self.state.value})")
        self.state = self._handlers[self.state]()
        return self.state

    def discard(self) -> None:
        """Release everything still held (used when a run is abandoned)."""
        for slot in self.slots:
            _discard(slot.template, slot.sample)
        self.slots = []

    # -- Collecting ---------------------------------------------------------

    def _collect(self) -> EnrollmentState:
        if self.attempts < self.settings.max_attempts and self.accepted < REQUIRED_GOOD_SAMPLES:
            attempt = self._attempt()
            self.history.append(attempt)

            if attempt.accepted:
                self.slots.append(attempt)
                deliver(self.notifier, good_swipes_message(self.accepted))
            elif self.attempts < self.settings.max_attempts:
                deliver(self.notifier, MSG_BAD_SWIPE)
            return EnrollmentState.COLLECTING

        if self.accepted == 0:
            return self._fail()
        if self.accepted < REQUIRED_GOOD_SAMPLES:
            return self._retry(MSG_NOT_ENOUGH_SWIPES)
        return EnrollmentState.VOTING

    def _attempt(self) -> CaptureAttempt:
        self.attempts += 1
        number = self.attempts

        try:
            sample = self.capture.capture(is_first_attempt=number == 1)
        except CaptureError as e:
            _discard(e.partial)
            return self._reject(number, f"capture failed: {e}")
        except Exception as e:
            log_error(e, context=f"capture (attempt {number})")
            return self._reject(number, f"capture raised {type(e).__name__}")

        if sample is None:
            return self._reject(number, "capture returned no sample")
        sample.attempt = number

        template: Optional[Template] = None
        try:
            self.capture.standardize(sample)
            template = self.extractor.extract(sample)
            if template is None:
                raise ExtractionError("extractor returned no template")
            template.attempt = number
            feature_count = int(self.extractor.feature_count(template))
        except ExtractionError as e:
            _discard(template, sample)
            return self._reject(number, f"extraction failed: {e}")
        except Exception as e:
            log_error(e, context=f"extraction (attempt {number})")
            _discard(template, sample)
            return self._reject(number, f"extraction raised {type(e).__name__}")
        except BaseException:
            _discard(template, sample)
            raise

        if feature_count < self.settings.min_features:
            _discard(template, sample)
            return self._reject(
                number,
                f"not enough features ({feature_count}/{self.settings.min_features})",
                feature_count=feature_count
            )

        log_enrollment("CAPTURE", "ACCEPTED", {"attempt": number, "features": feature_count})
        return CaptureAttempt(
            number=number,
            status=AttemptStatus.ACCEPTED,
            sample=sample,
            template=template,
            feature_count=feature_count
        )

    def _reject(self, number: int, reason: str, feature_count: Optional[int] = None) -> CaptureAttempt:
        log_enrollment("CAPTURE", "REJECTED", {"attempt": number, "reason": reason})
        return CaptureAttempt(
            number=number,
            status=AttemptStatus.REJECTED,
            feature_count=feature_count,
            reason=reason
        )

    # -- Voting -------------------------------------------------------------

    def _vote(self) -> EnrollmentState:
        templates = [slot.template for slot in self.slots]

        try:
            scores = score_triangle(self.comparator, templates)
        except Exception as e:
            log_error(e, context="compare")
            return self._retry(MSG_INCONSISTENT_IMAGES)

        try:
            vote = cast_vote(scores)
        except ConsensusTieError as e:
            log_error(e, context="vote", exc_info=False)
            return self._fail(scores)

        log_enrollment("VOTE", "WINNER", {
            "slot": vote.winner,
            "scores": scores.as_tuple(),
            "support": vote.supporting,
            "threshold": self.settings.match_threshold,
        })

        if not vote.passes(self.settings.match_threshold):
            return self._retry(MSG_INCONSISTENT_IMAGES, scores)

        winner = self.slots[vote.winner]
        for index, slot in enumerate(self.slots):
            if index != vote.winner:
                _discard(slot.template, slot.sample)

        sample: Optional[RawSample] = winner.sample
        if not self.return_sample:
            _discard(sample)
            sample = None

        deliver(self.notifier, MSG_SUCCESS)
        self.slots = []
        self.outcome = EnrollmentOutcome.completed(
            winner.template,
            sample,
            attempts=self.attempts,
            accepted=REQUIRED_GOOD_SAMPLES,
            scores=scores.as_tuple(),
            winner=vote.winner,
            message=MSG_SUCCESS
        )
        self._log_outcome()
        return EnrollmentState.COMPLETED

    # -- Terminal transitions -----------------------------------------------

    def _retry(self, message: str, scores: Optional[PairwiseScores] = None) -> EnrollmentState:
        accepted = self.accepted
        diagnostic: Optional[RawSample] = None

        for index, slot in enumerate(self.slots):
            _discard(slot.template)
            if index == 0 and self.return_sample:
                diagnostic = slot.sample
            else:
                _discard(slot.sample)

        deliver(self.notifier, message)
        self.slots = []
        self.outcome = EnrollmentOutcome.retry(
            diagnostic,
            attempts=self.attempts,
            accepted=accepted,
            scores=scores.as_tuple() if scores else None,
            message=message
        )
        self._log_outcome()
        return EnrollmentState.RETRY

    def _fail(self, scores: Optional[PairwiseScores] = None) -> EnrollmentState:
        accepted = self.accepted
        self.discard()
        self.outcome = EnrollmentOutcome.failed(
            attempts=self.attempts,
            accepted=accepted,
            scores=scores.as_tuple() if scores else None
        )
        self._log_outcome()
        return EnrollmentState.FAILED

    def _log_outcome(self) -> None:
        outcome = self.outcome
        log_enrollment("ENROLL", outcome.kind.name, {
            "attempts": outcome.attempts,
            "accepted": outcome.accepted,
            "winner": outcome.winner,
            "scores": outcome.scores,
        })


# ---------------------------------------------------------------------------
# EnrollmentCoordinator


class EnrollmentCoordinator:
    """Enrolls one template from a series of swipes.

    Collaborators are resolved once here and reused for every call.

    Attributes:
        capture: Source of raw swipes
        extractor: Template extraction service
        comparator: Pairwise similarity service
        notifier: Best-effort progress messages (None = silent)
        settings: Attempt budget, feature gate and match threshold
    """

    def __init__(
        self,
        capture: CaptureService,
        extractor: FeatureExtractor,
        comparator: Comparator,
        notifier: Optional[Notifier] = None,
        settings: Optional[EnrollmentSettings] = None
    ) -> None:
        """Initialize coordinator.

        Raises:
            TypeError: If a collaborator lacks the required methods
        """
        for name, value, protocol in (
            ("capture", capture, CaptureService),
            ("extractor", extractor, FeatureExtractor),
            ("comparator", comparator, Comparator),
        ):
            if not isinstance(value, protocol):
                raise TypeError(f"{name} does not implement {protocol.__name__}")
        if notifier is not None and not isinstance(notifier, Notifier):
            raise TypeError("notifier does not implement Notifier")

        self.capture = capture
        self.extractor = extractor
        self.comparator = comparator
        self.notifier = notifier
        self.settings = settings or EnrollmentSettings()

    def start(self, *, return_sample: bool = True) -> EnrollmentRun:
        """Create a fresh run without advancing it."""
        return EnrollmentRun(
            self.capture,
            self.extractor,
            self.comparator,
            self.notifier,
            self.settings,
            return_sample=return_sample
        )

    def enroll(self, *, return_sample: bool = True) -> EnrollmentOutcome:
        """Run one enrollment to completion.

        Args:
            return_sample: Attach the winner's (or first accepted) raw sample
                to the outcome; released otherwise

        Returns:
            EnrollmentOutcome (Completed, Retry or Failed)
        """
        run = self.start(return_sample=return_sample)
        logger.debug(
            f"Enrollment started (max_attempts={self.settings.max_attempts}, "
            f"min_features={self.settings.min_features}, threshold={self.settings.match_threshold})"
        )
        try:
            while not run.finished:
                run.step()
        except BaseException:
            run.discard()
            raise
        return run.outcome
