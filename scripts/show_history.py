"""Print the stored weather history (newest first)."""

from __future__ import annotations

import argparse

from sunrise.db.session import init_db
from sunrise.services.history import open_history_store


def main() -> None:
    parser = argparse.ArgumentParser(description="Show stored weather labels.")
    parser.add_argument("--limit", type=int, default=30, help="Number of entries to print (default 30).")
    args = parser.parse_args()

    init_db()
    with open_history_store() as store:
        last_weather = store.get_last_weather()
        histories = store.get_histories()

    if last_weather is None:
        print("No previous weather recorded.")
    else:
        print(f"Last weather: weatherId={last_weather.weather_id} temperature={last_weather.temperature:.1f}C")

    if not histories:
        print("History is empty.")
        return

    print(f"{len(histories)} entries, showing {min(args.limit, len(histories))}:")
    for position, entry in enumerate(histories[: args.limit]):
        print(f"{position:4d}  {entry.timestamp.isoformat()}  {entry.rule_name}")


if __name__ == "__main__":
    main()
