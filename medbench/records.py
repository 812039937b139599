# File: records.py
"""
Patient and doctor rows as read from the CSV datasets, and their typed form
as submitted to the contracts.
"""

import json
import logging
import os
import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Tuple

import pandas as pd

from medbench.errors import ConfigError, RecordCoercionError

logger = logging.getLogger(__name__)

Row = Dict[str, str]

LEADING_INT = re.compile(r'\s*([+-]?\d+)')


@dataclass(frozen=True)
class RecordKind:
    """Column layout and contract methods for one kind of record."""
    name: str
    id_column: str
    required_columns: Tuple[str, ...]
    # Argument order of the add method
    columns: Tuple[str, ...]
    int_columns: FrozenSet[str]
    add_method: str
    delete_method: str

    @property
    def label(self):
        return self.name.capitalize()


PATIENT = RecordKind(
    name='patient',
    id_column='patient_id',
    required_columns=('patient_id', 'age'),
    columns=('patient_id', 'age', 'highBP', 'highChol', 'cholCheck', 'bmi', 'smoker', 'stroke'),
    int_columns=frozenset(
        ('patient_id', 'age', 'highBP', 'highChol', 'cholCheck', 'bmi', 'smoker', 'stroke')
    ),
    add_method='addPatient',
    delete_method='deletePatient',
)

DOCTOR = RecordKind(
    name='doctor',
    id_column='doctor_id',
    required_columns=('doctor_id', 'doctor_name'),
    columns=('doctor_id', 'doctor_name', 'crdntls', 'gender', 'hospital_name', 'country', 'specialty'),
    int_columns=frozenset(('doctor_id',)),
    add_method='addDoctor',
    delete_method='deleteDoctor',
)

KINDS = (PATIENT, DOCTOR)


def validate_row(kind, row):
    """True when the id and the other required column are present and non-empty."""
    return all(row.get(column) not in (None, '') for column in kind.required_columns)


def parse_int(value):
    """
    Integer value of a CSV cell: its leading run of digits, so decimal cells
    ("28.0", "28.7") are truncated. The datasets store some integer columns
    that way. A cell that does not start with a digit raises ValueError.
    """
    match = LEADING_INT.match(value)
    if match is None:
        raise ValueError(f"invalid integer literal: {value!r}")
    return int(match.group(1))


@dataclass(frozen=True)
class TypedRecord:
    kind: RecordKind
    id: str
    values: Tuple

    def add_args(self):
        return list(self.values)

    def delete_args(self):
        return [self.values[self.kind.columns.index(self.kind.id_column)]]

    def as_dict(self):
        return dict(zip(self.kind.columns, self.values))

    def to_json_bytes(self):
        """Canonical JSON form of the record, the payload pinned to IPFS."""
        return json.dumps(
            self.as_dict(), sort_keys=True, separators=(',', ':'), ensure_ascii=False
        ).encode('utf-8')


def coerce_row(kind, row):
    """Converts a validated row into the typed arguments of the add call."""
    record_id = row.get(kind.id_column)
    values = []
    for column in kind.columns:
        raw = row.get(column)
        if column in kind.int_columns:
            try:
                values.append(parse_int(raw if raw is not None else ''))
            except ValueError:
                raise RecordCoercionError(kind.name, record_id, column, raw)
        else:
            values.append('' if raw is None else raw)
    return TypedRecord(kind=kind, id=record_id, values=tuple(values))


def read_rows(path) -> List[Row]:
    """
    Reads a CSV file into a list of rows. Every cell stays a string and blank
    cells become empty strings.
    """
    if not os.path.exists(path):
        raise ConfigError(f"Data file '{path}' was not found.")
    logger.info(f"--- Reading rows from {path} ---")
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    rows = df.to_dict(orient='records')
    logger.info(f"Read {len(rows)} rows from {path}")
    return rows
