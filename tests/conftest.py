from __future__ import annotations

import sys
from pathlib import Path

# Lets `import pool_kit` work from a plain checkout (no `pip install -e .`).
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))
