"""Seed the starter SMS rules into an empty rule table."""

import argparse
import asyncio
from pathlib import Path
import sys

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from ledgerscan.core.database import AsyncSessionLocal, init_db  # noqa: E402
from ledgerscan.domain.rules.defaults import DEFAULT_RULES, ensure_default_rules  # noqa: E402
from ledgerscan.domain.rules.repository import RuleRepository  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed default extraction rules")
    parser.add_argument(
        "--list",
        action="store_true",
        help="Print the default rule names without touching the database",
    )
    return parser.parse_args()


async def seed_rules() -> None:
    await init_db()
    async with AsyncSessionLocal() as session:
        created = await ensure_default_rules(RuleRepository(session))

    if created:
        print(f"Created {len(created)} rules: {', '.join(rule.name for rule in created)}")
    else:
        print("Rules already present; nothing seeded.")


if __name__ == "__main__":
    args = parse_args()
    if args.list:
        for rule in DEFAULT_RULES:
            print(f"{rule['priority']:>3}  {rule['name']}")
    else:
        asyncio.run(seed_rules())
