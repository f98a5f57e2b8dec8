class PaymentsEngineError(Exception):
    """Base class for errors raised outside the transaction engine."""


class InputSourceError(PaymentsEngineError):
    """Input file is missing or cannot be read. Aborts the run."""


class InputFormatError(PaymentsEngineError):
    """Input cannot be framed as transaction rows at all. Aborts the run."""


class DecodeError(PaymentsEngineError, ValueError):
    """A single row could not be decoded. The row is skipped."""
