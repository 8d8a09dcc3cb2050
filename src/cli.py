# src/cli.py
from __future__ import annotations

import os
import sys
import json
import argparse
import traceback

# Ensure our package is importable regardless of CWD
sys.path.insert(0, os.path.dirname(__file__))

# ---------------------------
# Commands
# ---------------------------

def cmd_serve(port: int, host: str, debug: bool):
    from eventhub import create_app
    app = create_app()
    app.run(host=host, port=port, debug=debug)


def cmd_db_ping() -> None:
    from eventhub.db.mongo import ping
    ok = ping()
    print("mongo ping:", "ok" if ok else "failed")
    if not ok:
        raise SystemExit(2)


def cmd_db_indexes() -> None:
    from eventhub.db.mongo import ensure_indexes
    ensure_indexes()
    print("indexes ensured")


def cmd_migrate_past_events(today: str | None, dry_run: bool):
    """
    Give ended events their past_events record (safe to run from cron).
    """
    from eventhub.services.events import migrate_past_events, past_events_status

    if dry_run:
        print(json.dumps(past_events_status(today), indent=2))
        return
    result = migrate_past_events(today)
    print(f"Processed {result['events_processed']} ended events, added {result['events_added']}")


def cmd_stats():
    from eventhub.analytics.stats import event_stats
    print(json.dumps(event_stats(), indent=2))


# ---------------------------
# Parser / main
# ---------------------------

def main():
    p = argparse.ArgumentParser(description="Event hub CLI")
    sub = p.add_subparsers(dest="cmd", required=True)

    # serve
    sp = sub.add_parser("serve", help="Run Flask server")
    sp.add_argument("--port", type=int, default=int(os.getenv("PORT", "8080")))
    sp.add_argument("--host", default=os.getenv("HOST", "0.0.0.0"))
    sp.add_argument("--debug", action="store_true")
    sp.set_defaults(func=lambda a: cmd_serve(a.port, a.host, a.debug))

    # db
    sc = sub.add_parser("db", help="Database utilities")
    sc_sub = sc.add_subparsers(dest="dbcmd", required=True)
    scp = sc_sub.add_parser("ping", help="Ping MongoDB")
    scp.set_defaults(func=lambda a: cmd_db_ping())
    sci = sc_sub.add_parser("indexes", help="Create lookup and uniqueness indexes")
    sci.set_defaults(func=lambda a: cmd_db_indexes())

    # past events
    mp = sub.add_parser("migrate-past-events", help="Create past_events records for ended events")
    mp.add_argument("--today", default=None, help="YYYY-MM-DD (default: current UTC date)")
    mp.add_argument("--dry-run", action="store_true", help="Only report how many events need a record")
    mp.set_defaults(func=lambda a: cmd_migrate_past_events(a.today, a.dry_run))

    # stats
    st = sub.add_parser("stats", help="Print live/upcoming/past event counts")
    st.set_defaults(func=lambda a: cmd_stats())

    args = p.parse_args()
    try:
        return args.func(args)
    except Exception as e:
        # Surface trace on CLI errors
        print("ERROR:", e)
        traceback.print_exc()
        raise SystemExit(1)


if __name__ == "__main__":
    main()
