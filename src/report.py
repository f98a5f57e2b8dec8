import csv
from dataclasses import dataclass
from typing import Iterable, List, TextIO

from models import ClientAccount
from money import format_amount

REPORT_COLUMNS = ["client", "available", "held", "total", "locked"]


@dataclass(frozen=True)
class AccountSummary:
    client: int
    available: str
    held: str
    total: str
    locked: bool


def build_report(accounts: Iterable[ClientAccount]) -> List[AccountSummary]:
    """One summary per account, in the order given."""
    return [
        AccountSummary(
            client=account.client_id,
            available=format_amount(account.available),
            held=format_amount(account.held),
            total=format_amount(account.total),
            locked=account.locked,
        )
        for account in accounts
    ]


def write_report(summaries: Iterable[AccountSummary], stream: TextIO) -> None:
    writer = csv.writer(stream, lineterminator="\n")
    writer.writerow(REPORT_COLUMNS)
    for summary in summaries:
        writer.writerow([
            summary.client,
            summary.available,
            summary.held,
            summary.total,
            str(summary.locked).lower(),
        ])
