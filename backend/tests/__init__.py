# Ensure the `backend` directory is importable so `post_enhancer` resolves
from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

# Add the backend directory to PYTHONPATH so imports like `from post_enhancer.*` work
ROOT_DIR = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT_DIR))

# Keep test runs away from real credentials and the repo's log directory
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "post-enhancer-test-logs"))
os.environ.setdefault("AUTH_TOKEN", "test-secret")
os.environ.setdefault("WAITER_MODE", "callback")
os.environ.setdefault("PUBLIC_BASE_URL", "http://enhancer.test")
