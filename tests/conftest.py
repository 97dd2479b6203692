import sys
from pathlib import Path

import pytest


# Make golf_analyzer importable without installing the package.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def chart_dir(tmp_path):
    out = tmp_path / "charts"
    out.mkdir()
    return out
