"""Reset all user scores, optionally rebuilding them from finished matches.

Usage: python scripts/reset_scores.py [--replay]
"""
import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlmodel import Session
from predictor.config import DATABASE_URL
from predictor.database import build_engine, create_db_and_tables
from predictor.logging import setup_logging
from predictor.services.scoring import rescore_all, reset_scores


def main():
    parser = argparse.ArgumentParser(description="Reset all user scores")
    parser.add_argument("--replay", action="store_true", help="rescore every finished match afterwards")
    args = parser.parse_args()

    setup_logging()
    engine = build_engine(DATABASE_URL)
    create_db_and_tables(engine)

    with Session(engine) as db:
        removed = reset_scores(db)
        print(f"Removed {removed} score rows")

        if args.replay:
            matches = rescore_all(db)
            print(f"Rescored {matches} finished matches")
        else:
            print("Enter official scores again (or run with --replay) to recalculate points.")


if __name__ == "__main__":
    main()
