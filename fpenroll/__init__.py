"""
fpenroll - Swipe-Sensor Fingerprint Enrollment
Collects three good swipes, votes for the most consistent one and hands back its template.
"""

from .coordinator import EnrollmentCoordinator, EnrollmentRun, EnrollmentState
from .errors import CaptureError, ConsensusTieError, EnrollmentError, ExtractionError
from .models import EnrollmentOutcome, EnrollmentSettings, OutcomeKind, RawSample, Template
from .voting import PairwiseScores, cast_vote

__version__ = "1.0.0"
__all__ = [
    'EnrollmentCoordinator', 'EnrollmentRun', 'EnrollmentState',
    'CaptureError', 'ConsensusTieError', 'EnrollmentError', 'ExtractionError',
    'EnrollmentOutcome', 'EnrollmentSettings', 'OutcomeKind', 'RawSample', 'Template',
    'PairwiseScores', 'cast_vote',
]
