"""
Check stock status - remaining kilograms per branch and which lots are running low.
"""

import argparse
import sys
from pathlib import Path
from typing import Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from produce_trading.config import configure_logging, load_settings
from produce_trading.domain.principal import HEAD_OFFICE, Principal, Role
from produce_trading.domain.produce import Branch
from produce_trading.repositories.supabase_store import SupabaseLedgerStore
from produce_trading.services.summary_service import SummaryProjector


def check_stock_status(branch: Optional[str] = None) -> int:
    """Print the stock summary; returns a process exit code."""

    settings = load_settings()
    configure_logging(settings.log_level)

    if branch:
        principal = Principal(user_id="stock-check", role=Role.MANAGER, branch=Branch(branch.upper()).value)
    else:
        principal = Principal(user_id="stock-check", role=Role.DIRECTOR, branch=HEAD_OFFICE)

    store = SupabaseLedgerStore.from_settings(settings)
    projector = SummaryProjector(store, low_stock_threshold_kg=settings.low_stock_threshold_kg)
    result = projector.stock_summary(principal)
    if not result.success:
        print(f"Error: {result.message}")
        return 1

    summary = result.value
    print("=" * 50)
    print("STOCK STATUS")
    print("=" * 50)
    print(f"Lots:                      {summary.lot_count}")
    print(f"Total stock (kg):          {summary.total_kg}")
    print(f"Stock value:               {summary.total_value}")
    print(f"Stock cost:                {summary.total_cost}")
    print(f"Low-stock lots:            {summary.low_stock_count}")
    print("=" * 50)

    print("\nBreakdown by branch:")
    print("-" * 50)
    for name, stock in summary.by_branch.items():
        print(f"{name}: {stock.total_kg}kg in {stock.lot_count} lots ({stock.low_stock_count} low)")
    print("-" * 50)

    if summary.low_stock:
        print(f"\nLots below {settings.low_stock_threshold_kg}kg:")
        for item in summary.low_stock:
            print(f"  {item.branch.value} {item.produce.value}: {item.tonnage_kg}kg (lot {item.lot_id})")

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Print remaining stock per branch")
    parser.add_argument("--branch", choices=[b.value for b in Branch], type=str.upper, help="Limit to one branch")
    args = parser.parse_args()
    sys.exit(check_stock_status(args.branch))
