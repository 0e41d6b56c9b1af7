import os
import sys

import pytest


# Ensure the repository root is on sys.path for `from mailbox_chess...` imports
REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from mailbox_chess.search.service import SearchService  # noqa: E402
from mailbox_chess.search.transposition import TranspositionTable  # noqa: E402


@pytest.fixture
def service() -> SearchService:
    # Small table keeps allocation cheap across many tests
    return SearchService(TranspositionTable.with_slots(4096), quiescence_depth=4)
