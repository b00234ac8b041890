import os
import sys


# Test modules import `common`, `connectors`, `pipelines`, ... as top-level packages,
# so `src/backend` must be importable even when pytest runs from the repository root.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)
