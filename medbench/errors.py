# File: errors.py


class MedbenchError(Exception):
    """Base class for every error raised by the benchmark."""


class ConfigError(MedbenchError):
    """Bad configuration, missing input file or missing deployment artifacts."""


class RecordCoercionError(MedbenchError):
    """A CSV cell could not be converted to the type the contract expects."""

    def __init__(self, kind, record_id, field, value):
        self.kind = kind
        self.record_id = record_id
        self.field = field
        self.value = value
        super().__init__(
            f"Invalid integer for {kind} {record_id!r}: {field}={value!r}"
        )


class PinningError(MedbenchError):
    """The IPFS pinning service did not return a content identifier."""


class LedgerError(MedbenchError):
    """
    A contract call could not be submitted or its transaction reverted.

    `submission` is the row's RowSubmission at the moment of failure, so a
    failed delete can be told apart from a failed add.
    """

    def __init__(self, message, method=None, record_id=None, submission=None):
        self.method = method
        self.record_id = record_id
        self.submission = submission
        super().__init__(message)
