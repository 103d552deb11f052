from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from services.api.app.services.container import build_services


def main() -> int:
    parser = argparse.ArgumentParser(description="Inspect, back up and submit the request basket")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="Print basket items in priority order")

    export = sub.add_parser("export", help="Write the basket snapshot to a file")
    export.add_argument("path", type=Path)

    imp = sub.add_parser("import", help="Append the items of a snapshot file to the basket")
    imp.add_argument("path", type=Path)

    sub.add_parser("submit", help="Submit all pending items")
    sub.add_parser("history", help="Print the submission history, newest first")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    services = build_services()

    if args.command == "list":
        for item in services.basket.list():
            request = item.request
            print(f"{item.priority:>3}  {item.status.value:<9} {request.request_type:<17} {item.id}")
        return 0

    if args.command == "export":
        args.path.write_text(services.basket.export_snapshot(), encoding="utf-8")
        print(f"Wrote {len(services.basket)} item(s) to {args.path}")
        return 0

    if args.command == "import":
        items = services.basket.import_snapshot(args.path.read_text(encoding="utf-8"))
        print(f"Basket now holds {len(items)} item(s)")
        return 0

    if args.command == "submit":
        result = asyncio.run(services.pipeline.submit())
        print(f"Submitted {result.submitted_count} item(s) in {result.batch_count} batch(es)")
        for error in result.errors:
            print(f"  {error}", file=sys.stderr)
        return 0 if result.success else 1

    for entry in services.history.list():
        print(f"{entry.submitted_at.isoformat()}  {entry.confirmation_id or '-':<16} {entry.id}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
