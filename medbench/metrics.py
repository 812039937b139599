# File: metrics.py

import json
import logging
import os
import tempfile
import time
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, List

from medbench.records import DOCTOR, KINDS, PATIENT

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')

ADD = 'add'
DELETE = 'delete'


def to_ms(seconds):
    """Seconds (float) to milliseconds with two fraction digits."""
    return (Decimal(repr(seconds)) * 1000).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


class Stopwatch:
    """
    Times a single call. The clock is injectable so tests can hand in
    deterministic readings; it must return seconds.
    """

    def __init__(self, clock=None):
        self.clock = clock or time.perf_counter

    def time(self, fn, *args, **kwargs):
        start = self.clock()
        result = fn(*args, **kwargs)
        end = self.clock()
        return result, to_ms(end - start)


@dataclass(frozen=True)
class CallOutcome:
    id: str
    gas_used: int
    elapsed_ms: Decimal

    def to_dict(self):
        return {
            'id': self.id,
            'gasUsed': str(self.gas_used),
            'executionTimeMs': f"{self.elapsed_ms:.2f}",
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=data['id'],
            gas_used=int(data['gasUsed']),
            elapsed_ms=Decimal(data['executionTimeMs']).quantize(TWO_PLACES),
        )


def _method(kind, action):
    return kind.add_method if action == ADD else kind.delete_method


class MetricsReport:
    """
    The four ordered outcome sequences of one run:
    patient.addPatient, patient.deletePatient, doctor.addDoctor, doctor.deleteDoctor.
    """

    def __init__(self):
        self._sections: Dict[str, Dict[str, List[CallOutcome]]] = {
            kind.name: {kind.add_method: [], kind.delete_method: []} for kind in KINDS
        }

    def record(self, kind, action, outcome):
        self._sections[kind.name][_method(kind, action)].append(outcome)

    def outcomes(self, kind, action):
        return list(self._sections[kind.name][_method(kind, action)])

    def to_dict(self):
        return {
            section: {
                method: [outcome.to_dict() for outcome in outcomes]
                for method, outcomes in methods.items()
            }
            for section, methods in self._sections.items()
        }

    @classmethod
    def from_dict(cls, data):
        report = cls()
        for kind in KINDS:
            section = data.get(kind.name, {})
            for action in (ADD, DELETE):
                for entry in section.get(_method(kind, action), []):
                    report.record(kind, action, CallOutcome.from_dict(entry))
        return report

    def __eq__(self, other):
        if not isinstance(other, MetricsReport):
            return NotImplemented
        return self._sections == other._sections

    def __repr__(self):
        counts = ', '.join(
            f"{method}={len(outcomes)}"
            for methods in self._sections.values()
            for method, outcomes in methods.items()
        )
        return f"MetricsReport({counts})"


def persist(report, path):
    """
    Writes the report as pretty-printed JSON. The file is written to a
    temporary name next to the destination and moved into place, so readers
    never see a half-written report. An existing file is overwritten.
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=directory, prefix='.medbench-', suffix='.json')
    try:
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            json.dump(report.to_dict(), f, indent=2)
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    logger.info(f"Performance metrics saved to '{path}'.")


def load_report(path):
    with open(path, 'r', encoding='utf-8') as f:
        return MetricsReport.from_dict(json.load(f))


def summarize(report):
    """Count, total gas, mean gas and mean latency per contract method."""
    summary = {}
    for kind in (PATIENT, DOCTOR):
        for action in (ADD, DELETE):
            outcomes = report.outcomes(kind, action)
            count = len(outcomes)
            total_gas = sum(o.gas_used for o in outcomes)
            total_ms = sum((o.elapsed_ms for o in outcomes), Decimal('0'))
            summary[_method(kind, action)] = {
                'count': count,
                'totalGas': total_gas,
                'meanGas': (total_gas / count) if count else 0.0,
                'meanTimeMs': (total_ms / count).quantize(TWO_PLACES) if count else Decimal('0.00'),
            }
    return summary
