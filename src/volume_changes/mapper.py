import abc
import typing

import pandas as pd

from stairval.notepad import Notepad

from .accumulator import ROIAccumulator
from .loader import PATIENT_ID_COLUMN, VOLUME_COLUMNS
from .record import InputRecord
from .roi import ROI

# Input header → InputRecord field
RENAME_MAP = {column: column.lower() for column in VOLUME_COLUMNS}


class TableMapper(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def apply_mapping(
            self, table: pd.DataFrame, notepad: Notepad
    ) -> dict[ROI, ROIAccumulator]:
        # return one filled accumulator per ROI, not intermediate records.
        raise NotImplementedError


class DefaultMapper(TableMapper):
    def apply_mapping(
            self, table: pd.DataFrame, notepad: Notepad
    ) -> dict[ROI, ROIAccumulator]:
        """
        Process:
        1) map table rows to InputRecords
        2) feed every record into the per-ROI accumulators
        3) return the accumulators keyed by ROI (GTV, GTV_N, PTV_DP order)
        """
        records = self.map_table(table, notepad)
        return self.records_to_accumulators(records, notepad)

    @staticmethod
    def _to_optional_float(value: typing.Any) -> typing.Optional[float]:
        """
        Volume cell normalization:
        - None, NaN, pandas NA and blank strings -> None
        - anything else is passed through float()
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        if pd.isna(value):
            return None
        return float(value)

    @staticmethod
    def parse_record_row(row: pd.Series, notepad: Notepad) -> typing.Optional[InputRecord]:
        """
        Parse a single table row into an InputRecord.
        Columns absent from the row are treated as missing volumes.
        Returns None (and records an error) if the row cannot be converted.
        """
        patient_id = row.get(PATIENT_ID_COLUMN)
        volumes = {
            field: DefaultMapper._to_optional_float(row.get(column))
            for column, field in RENAME_MAP.items()
        }
        try:
            return InputRecord(
                patient_id="" if patient_id is None or pd.isna(patient_id) else str(patient_id),
                **volumes,
            )
        except (ValueError, TypeError) as e:
            notepad.add_error(f"Patient {patient_id!r}: {e}")
            return None

    def map_table(self, df: pd.DataFrame, notepad: Notepad) -> list[InputRecord]:
        """
        Table-level wrapper for volume rows:
          - require the patient identifier column
          - warn once about every absent volume column
          - delegate row conversion to parse_record_row
        """
        have = set(df.columns)
        if PATIENT_ID_COLUMN not in have:
            notepad.add_error(f"Table: missing required column {PATIENT_ID_COLUMN!r}")
            return []
        absent = [column for column in VOLUME_COLUMNS if column not in have]
        if absent:
            notepad.add_warning(f"Table: volume columns not found, treated as missing: {absent}")

        records: list[InputRecord] = []
        for _, row in df.iterrows():
            record = self.parse_record_row(row, notepad)
            if record is not None:
                records.append(record)
        return records

    @staticmethod
    def records_to_accumulators(
            records: typing.Iterable[InputRecord], notepad: Notepad
    ) -> dict[ROI, ROIAccumulator]:
        """
        Single, order-preserving pass over the records. Each ROI is filled
        independently: a patient dropped for one ROI can still count for another.
        Patients with some but not all phases of an ROI are reported as warnings.
        """
        accumulators = {roi: ROIAccumulator(roi) for roi in ROI}
        for record in records:
            for roi, accumulator in accumulators.items():
                if accumulator.add(*record.volumes_for(roi)):
                    continue
                missing = record.missing_phases(roi)
                if len(missing) < 3:
                    notepad.add_warning(
                        f"ROI {roi.value!r}: patient {record.patient_id!r} dropped, "
                        f"missing phase(s) {missing}"
                    )
        return accumulators
