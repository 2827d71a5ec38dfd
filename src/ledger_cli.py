import sys
import logging
from typing import List, Optional

from ledger_config import LedgerConfig
from csv_io import write_accounts
from payments_engine import PaymentsEngine, ShardedPaymentsEngine


def build_engine(config: LedgerConfig) -> PaymentsEngine:
    if config.num_shards > 1:
        return ShardedPaymentsEngine(num_shards=config.num_shards)
    return PaymentsEngine()


def main(argv: Optional[List[str]] = None):
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 1:
        print("Usage: python ledger_cli.py <input.csv>", file=sys.stderr)
        sys.exit(1)

    config = LedgerConfig.from_env()
    logging.basicConfig(
        level=config.log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    engine = build_engine(config)
    accounts = engine.process_file(args[0])
    write_accounts(accounts, sys.stdout)


if __name__ == "__main__":
    main()
