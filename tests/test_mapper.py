"""
DefaultMapper: table rows → InputRecords → per-ROI accumulators.
"""

import math

import pandas as pd
import pytest

from volume_changes.loader import load_volume_table
from volume_changes.mapper import DefaultMapper
from volume_changes.record import InputRecord
from volume_changes.roi import ROI


class TestDefaultMapper:
    @pytest.fixture(scope="class")
    def mapper(self) -> DefaultMapper:
        return DefaultMapper()

    def test_apply_mapping_on_sample_table(self, mapper: DefaultMapper, fpath_volumes: str, notepad):
        accumulators = mapper.apply_mapping(load_volume_table(fpath_volumes), notepad)

        assert list(accumulators) == [ROI.GTV, ROI.GTV_N, ROI.PTV_DP]
        gtv = accumulators[ROI.GTV]
        # P03 is missing GTV phase 2
        assert gtv.phase(1) == [10.0, 8.0, 7.5]
        assert gtv.phase(2) == [12.0, 9.0, 6.5]
        assert gtv.phase(3) == [11.0, 10.0, 6.0]
        # P03 still counts for GTV_N; P04 has no GTV_N volumes
        assert accumulators[ROI.GTV_N].phase(1) == [4.0, 5.0, 6.0]
        assert len(accumulators[ROI.PTV_DP]) == 4

    def test_partial_patient_is_reported(self, mapper: DefaultMapper, fpath_volumes: str, notepad):
        mapper.apply_mapping(load_volume_table(fpath_volumes), notepad)
        # P03 (GTV) only; P04 has no GTV_N phase at all and is dropped silently
        assert notepad.has_warnings(include_subsections=True)
        assert len(list(notepad.warnings())) == 1
        assert not notepad.has_errors(include_subsections=True)

    def test_records_to_accumulators_end_to_end_example(self, mapper: DefaultMapper, notepad):
        records = [
            InputRecord(patient_id="A", gtv_phase_1=10.0, gtv_phase_2=12.0, gtv_phase_3=11.0),
            InputRecord(patient_id="B", gtv_phase_1=8.0, gtv_phase_2=9.0, gtv_phase_3=10.0),
        ]
        accumulators = mapper.records_to_accumulators(records, notepad)
        gtv = accumulators[ROI.GTV]
        assert gtv.phase(1) == [10.0, 8.0]
        assert gtv.phase(2) == [12.0, 9.0]
        assert gtv.phase(3) == [11.0, 10.0]
        assert len(accumulators[ROI.GTV_N]) == 0
        assert len(accumulators[ROI.PTV_DP]) == 0

    def test_roi_independence(self, mapper: DefaultMapper, notepad):
        record = InputRecord(
            patient_id="A",
            gtv_phase_1=1.0, gtv_phase_2=None, gtv_phase_3=3.0,
            gtv_n_phase_1=1.0, gtv_n_phase_2=2.0, gtv_n_phase_3=3.0,
        )
        accumulators = mapper.records_to_accumulators([record], notepad)
        assert len(accumulators[ROI.GTV]) == 0
        assert len(accumulators[ROI.GTV_N]) == 1

    def test_map_table_missing_patient_column_errors(self, mapper: DefaultMapper, notepad):
        df = pd.DataFrame({"GTV_phase_1": [1.0]})
        assert mapper.map_table(df, notepad) == []
        assert notepad.has_errors(include_subsections=True)

    def test_map_table_absent_volume_columns_warns(self, mapper: DefaultMapper, notepad):
        df = pd.DataFrame({"Patient ID": ["P1"], "GTV_phase_1": [1.0]})
        records = mapper.map_table(df, notepad)
        assert records == [InputRecord(patient_id="P1", gtv_phase_1=1.0)]
        assert notepad.has_warnings(include_subsections=True)


def test_to_optional_float_variants():
    f = DefaultMapper._to_optional_float
    assert f(None) is None
    assert f(math.nan) is None
    assert f(pd.NA) is None
    assert f("  ") is None
    assert f(3) == 3.0
    assert f("2.5") == 2.5
