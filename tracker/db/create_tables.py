"""Create (or with --reset, recreate) the backend schema."""
from __future__ import annotations

import argparse

from sqlalchemy.exc import SQLAlchemyError

from .session import Base, get_engine
from . import models  # noqa: F401  # registers the tables on Base.metadata


def create_all(reset: bool = False) -> None:
    engine = get_engine()
    if reset:
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def main() -> None:
    ap = argparse.ArgumentParser(description="Create the tracker backend tables")
    ap.add_argument("--reset", action="store_true", help="drop existing tables first")
    args = ap.parse_args()
    try:
        create_all(reset=args.reset)
    except SQLAlchemyError as exc:
        raise SystemExit(f"Failed to create tables: {exc}") from exc
    print("Database tables created successfully.")


if __name__ == "__main__":
    main()
