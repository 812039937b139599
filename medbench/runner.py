# File: runner.py

import enum
import logging
import sys

from medbench.config import configure_logging, load_run_config
from medbench.errors import LedgerError, PinningError
from medbench.ledger import LedgerClient, connect_to_blockchain, load_deployment
from medbench.metrics import ADD, DELETE, CallOutcome, MetricsReport, Stopwatch, persist, summarize
from medbench.pinning import build_pinner
from medbench.records import DOCTOR, PATIENT, coerce_row, read_rows, validate_row

logger = logging.getLogger(__name__)


class RowState(enum.Enum):
    PENDING = 'pending'
    ADDED = 'added'
    DELETED = 'deleted'


class RowSubmission:
    """
    One typed record moving through add -> delete.
    The state only ever moves forward; a failure leaves it where it was.
    """

    def __init__(self, record, cid=None):
        self.record = record
        self.cid = cid
        self.state = RowState.PENDING
        self.add_outcome = None
        self.delete_outcome = None

    def mark_added(self, outcome):
        if self.state is not RowState.PENDING:
            raise RuntimeError(f"Cannot add record {self.record.id} in state {self.state.value}")
        self.add_outcome = outcome
        self.state = RowState.ADDED

    def mark_deleted(self, outcome):
        if self.state is not RowState.ADDED:
            raise RuntimeError(f"Cannot delete record {self.record.id} in state {self.state.value}")
        self.delete_outcome = outcome
        self.state = RowState.DELETED


class BatchRunner:
    """
    Submits every row as an add call followed by a delete call and records
    gas and latency of each call. Strictly sequential: a call is confirmed
    before the next one is submitted.
    """

    def __init__(self, ledger, pinner=None, clock=None, pinning_enabled=False):
        if pinning_enabled and pinner is None:
            raise ValueError("pinning_enabled requires a pinner")
        self.ledger = ledger
        self.pinner = pinner
        self.pinning_enabled = pinning_enabled
        self.stopwatch = Stopwatch(clock)

    def run(self, patient_rows, doctor_rows, limit):
        report = MetricsReport()
        for kind, rows in ((PATIENT, patient_rows), (DOCTOR, doctor_rows)):
            logger.info(f"--- {kind.label}s to Ethereum contract ---")
            for row in rows[:min(limit, len(rows))]:
                self.process_row(kind, row, report)
        return report

    def process_row(self, kind, row, report):
        if not validate_row(kind, row):
            logger.warning(f"Skipping invalid {kind.name} data for ID {row.get(kind.id_column)}")
            return None

        record = coerce_row(kind, row)
        submission = RowSubmission(record, cid=self._pin(record))

        logger.info(f"Adding {kind.label} {record.id}...")
        args = record.add_args()
        if submission.cid is not None:
            args.append(submission.cid)
        outcome = self._call(kind.add_method, args, submission)
        submission.mark_added(outcome)
        report.record(kind, ADD, outcome)

        logger.info(f"Deleting {kind.label} {record.id}...")
        outcome = self._call(kind.delete_method, record.delete_args(), submission)
        submission.mark_deleted(outcome)
        report.record(kind, DELETE, outcome)
        return submission

    def _pin(self, record):
        if not self.pinning_enabled:
            return None
        try:
            cid = self.pinner.pin(record.to_json_bytes(), name=f"{record.kind.name}-{record.id}.json")
        except PinningError as e:
            logger.warning(f"Pinning {record.kind.name} {record.id} failed, submitting without CID: {e}")
            return None
        logger.info(f"Pinned {record.kind.name} {record.id}. CID: {cid}")
        return cid

    def _submit_and_wait(self, method, args):
        return self.ledger.wait(self.ledger.submit(method, args))

    def _call(self, method, args, submission):
        try:
            receipt, elapsed_ms = self.stopwatch.time(self._submit_and_wait, method, args)
        except LedgerError as e:
            e.method = method
            e.record_id = submission.record.id
            e.submission = submission
            raise
        return CallOutcome(id=submission.record.id, gas_used=receipt.gas_used, elapsed_ms=elapsed_ms)


def execute(config, clock=None):
    """
    Runs one complete benchmark described by `config` and writes the report.
    Nothing is written when the run fails.
    """
    patients = read_rows(config.patients_file)
    doctors = read_rows(config.doctors_file)

    w3 = connect_to_blockchain(config.node_url)
    abi, address = load_deployment(config.artifacts_file, config.contract_name)
    address = config.contract_address or address
    logger.info(f"--- Loading {config.contract_name} at {address} ---")
    ledger = LedgerClient.from_deployment(w3, abi, address)

    runner = BatchRunner(
        ledger,
        pinner=build_pinner(config),
        clock=clock,
        pinning_enabled=config.pinning_enabled,
    )
    report = runner.run(patients, doctors, config.row_limit)
    persist(report, config.output_file)

    for method, stats in summarize(report).items():
        logger.info(
            f"{method}: {stats['count']} calls, mean gas {stats['meanGas']:.0f}, "
            f"mean time {stats['meanTimeMs']} ms"
        )
    logger.info("✅ All Data Successfully Stored in Smart Contracts!")
    return report


def main(preset):
    configure_logging()
    try:
        config = load_run_config(preset)
        execute(config)
    except Exception as e:
        logger.exception(f"❌ Error: {e}")
        sys.exit(1)


def main_lightweight():
    main('lightweight')


def main_basic():
    main('basic')


if __name__ == "__main__":
    main_lightweight()
