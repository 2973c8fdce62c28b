import json
import math

import pytest

from volume_changes.errors import ParseError
from volume_changes.stats import PhaseTransitionStat
from volume_changes.writer import read_stats_json, write_stats_json


def test_write_then_read_back(tmp_path):
    stats = [
        PhaseTransitionStat("GTV", 1, 2, avg_vol_phase_start=9.0, avg=-1.5, std_dev=0.7071067811865476, n=2),
        PhaseTransitionStat("GTV", 2, 3, avg_vol_phase_start=10.5, avg=math.nan, std_dev=math.nan, n=0),
    ]
    path = write_stats_json(stats, tmp_path / "out" / "stats.json")
    assert path.exists()

    loaded = read_stats_json(path)
    assert loaded == stats
    for original, restored in zip(stats, loaded):
        assert restored.n == original.n
        assert restored.avg_vol_phase_start == pytest.approx(original.avg_vol_phase_start)
        assert restored.avg == pytest.approx(original.avg, nan_ok=True)
        assert restored.std_dev == pytest.approx(original.std_dev, nan_ok=True)


def test_written_document_is_strict_json(tmp_path):
    stats = [PhaseTransitionStat("GTV_N", 1, 2, avg=math.nan, std_dev=math.nan, n=0)]
    path = write_stats_json(stats, tmp_path / "stats.json")
    text = path.read_text(encoding="utf-8")
    assert "NaN" not in text
    payload = json.loads(text)
    assert payload == [
        {
            "ROI": "GTV_N",
            "Volume Phase start": None,
            "Phase start": 1,
            "Phase end": 2,
            "average": None,
            "std_dev": None,
            "n": 0,
        }
    ]


@pytest.mark.parametrize("content", ["{not json", "{}", "[{\"ROI\": \"GTV\"}]"])
def test_read_malformed_document_raises(tmp_path, content):
    path = tmp_path / "bad.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ParseError):
        read_stats_json(path)
