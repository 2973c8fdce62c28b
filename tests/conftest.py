import os
import pytest

from stairval.notepad import Notepad, create_notepad


@pytest.fixture(scope="session")
def fpath_test_dir() -> str:
    """
    Path to `tests/data/` folder.
    """
    return os.path.join(os.path.dirname(__file__), "data")


@pytest.fixture(scope="session")
def fpath_volumes(fpath_test_dir: str) -> str:
    """
    Four patients; P03 lacks GTV phase 2, P04 has no GTV_N volumes at all.
    """
    return os.path.join(fpath_test_dir, "volumes.csv")


@pytest.fixture
def notepad() -> Notepad:
    return create_notepad("test")


HEADER = (
    "Patient ID;GTV_phase_1;GTV_phase_2;GTV_phase_3;"
    "GTV_N_phase_1;GTV_N_phase_2;GTV_N_phase_3;"
    "PTV_DP_phase_1;PTV_DP_phase_2;PTV_DP_phase_3\n"
)


@pytest.fixture
def write_csv(tmp_path):
    """Write `body` below the full volume header and return the file path."""
    def _write(body: str, header: str = HEADER, name: str = "volumes.csv") -> str:
        path = tmp_path / name
        path.write_text(header + body, encoding="utf-8")
        return str(path)
    return _write
