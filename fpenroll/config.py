"""Configuration file for fpenroll

This module contains all configurable parameters for swipe-sensor enrollment.

Modify these values to tune the enrollment behavior without changing the core code.
"""

import os
from pathlib import Path

# ============================================================================
# PATHS
# ============================================================================

IMAGE_EXTENSIONS = {".bmp", ".png", ".jpg", ".jpeg", ".tif", ".tiff", ".pgm"}  # Supported frame formats

# ============================================================================
# ENROLLMENT LOOP
# ============================================================================

# Capture attempts allowed per enrollment call (good + bad swipes)
MAX_ATTEMPTS: int = 6

# Good samples needed before voting (voting is three-way, do not change)
REQUIRED_GOOD_SAMPLES: int = 3

# ============================================================================
# QUALITY GATE
# ============================================================================

# Baseline minutiae count used by generic image drivers
MIN_ACCEPTABLE_MINUTIAE: int = 10

# Swipe sensors produce partial prints, so enrollment asks for twice the baseline
MIN_ACCEPTABLE_FEATURES: int = 2 * MIN_ACCEPTABLE_MINUTIAE

# ============================================================================
# CONSENSUS VOTING
# ============================================================================

# Minimum comparator score (0-100 scale) the winner's best supporting pair must reach
MATCH_THRESHOLD: int = 60

# Comparator score scale
SCORE_MIN: int = 0
SCORE_MAX: int = 100

# ============================================================================
# NOTIFICATIONS
# ============================================================================

POPUP_COMMAND: str = "xmessage"
POPUP_TIMEOUT_SECONDS: int = 2  # Pop-ups close themselves after this delay

# ============================================================================
# LOGGING
# ============================================================================

# Defaults to ~/.fpenroll/logs
LOG_DIR = Path(os.environ.get("FPENROLL_LOG_DIR", Path.home() / ".fpenroll" / "logs"))
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB per file
LOG_BACKUP_COUNT = 5  # Keep 5 backup files
VERBOSE: bool = os.environ.get("FPENROLL_VERBOSE", "0").lower() in ("1", "true", "yes")

# ============================================================================
# VALIDATION
# ============================================================================

def validate_config():
    """Validate configuration consistency."""
    errors = []

    if MAX_ATTEMPTS < REQUIRED_GOOD_SAMPLES:
        errors.append(
            f"MAX_ATTEMPTS must be >= REQUIRED_GOOD_SAMPLES (got {MAX_ATTEMPTS} < {REQUIRED_GOOD_SAMPLES})"
        )

    if REQUIRED_GOOD_SAMPLES != 3:
        errors.append(f"REQUIRED_GOOD_SAMPLES must be 3 for three-way voting (got {REQUIRED_GOOD_SAMPLES})")

    if MIN_ACCEPTABLE_FEATURES < MIN_ACCEPTABLE_MINUTIAE:
        errors.append(
            f"MIN_ACCEPTABLE_FEATURES must be >= MIN_ACCEPTABLE_MINUTIAE (got {MIN_ACCEPTABLE_FEATURES})"
        )

    if not (SCORE_MIN <= MATCH_THRESHOLD <= SCORE_MAX):
        errors.append(f"MATCH_THRESHOLD must be in [{SCORE_MIN}, {SCORE_MAX}] (got {MATCH_THRESHOLD})")

    if POPUP_TIMEOUT_SECONDS <= 0:
        errors.append(f"POPUP_TIMEOUT_SECONDS must be positive (got {POPUP_TIMEOUT_SECONDS})")

    if errors:
        raise ValueError("Configuration validation failed:\n" + "\n".join(errors))

# Run validation on import
validate_config()
