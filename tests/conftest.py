import os
import sys

# charts are rendered without a display
os.environ.setdefault("MPLBACKEND", "Agg")

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)
