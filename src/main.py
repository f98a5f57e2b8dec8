import argparse
import logging
import sys
from typing import Optional, Sequence

from pydantic import ValidationError

from config import get_settings
from errors import PaymentsEngineError
from payments_engine import PaymentsEngine
from report import build_report, write_report

__version__ = "0.1.0"


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="payments-engine",
        description="Apply a CSV log of transactions and print the final state of every client account.",
    )
    parser.add_argument("input", help="Path to the transactions CSV file.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        settings = get_settings()
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in e.errors()
        )
        print(f"error: invalid settings: {problems}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    engine = PaymentsEngine(
        num_workers=settings.num_workers,
        allow_withdrawal_disputes=settings.allow_withdrawal_disputes,
    )
    try:
        accounts = engine.process_file(args.input)
    except PaymentsEngineError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    write_report(build_report(accounts), sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
