# init_db.py
import argparse
import asyncio

from pharmabook.db.sql import init_db


async def init_models(drop: bool):
    await init_db(drop=drop)
    print("Database schema recreated successfully!" if drop else "Database schema is up to date.")


def main():
    parser = argparse.ArgumentParser(description="Create the pharmabook tables")
    parser.add_argument(
        "--drop",
        action="store_true",
        help="Drop every table first (destroys all bookings)",
    )
    args = parser.parse_args()
    asyncio.run(init_models(args.drop))


if __name__ == "__main__":
    main()
