"""Shared pytest setup: keep enrollment logs out of the project tree."""

import os
import tempfile

os.environ.setdefault("FPENROLL_LOG_DIR", tempfile.mkdtemp(prefix="fpenroll-logs-"))
