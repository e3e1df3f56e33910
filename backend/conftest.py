# Ensure 'backend/' is on sys.path so 'import app.*' works
# even when pytest is started from the repository root.
import os
from pathlib import Path
import sys

_BACKEND_ROOT = Path(__file__).resolve().parent
if str(_BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(_BACKEND_ROOT))

# Settings are read at import time; select the test profile first
os.environ["is_testing"] = "true"
os.environ["environment"] = "testing"
os.environ["auto_create_tables"] = "false"
