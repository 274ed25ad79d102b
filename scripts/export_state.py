from __future__ import annotations

import argparse
import json
import os
import sys

from modsync.core.config import ConfigManager
from modsync.core.config.paths import ConfigFsPaths
from modsync.core.errors import ModsyncError
from modsync.core.state.store_sqlite import ModuleStateStore


def main() -> None:
    ap = argparse.ArgumentParser(description="Dump the module state table as JSON.")
    ap.add_argument("--root", default=".", help="Project root (default: .)")
    ap.add_argument("--out", default=None, help="Write to this file instead of stdout.")
    args = ap.parse_args()

    cm = ConfigManager(fs=ConfigFsPaths(str(args.root or ".")), logger=None, read_only=True)
    cm.load_all()
    db_path = cm.state_db_path()
    if not os.path.exists(db_path):
        print(f"No state database at {db_path}", file=sys.stderr)
        raise SystemExit(1)
    try:
        store = ModuleStateStore(path=db_path)
        payload = {
            "schema_version": store.schema_version(),
            "modules": [r.model_dump(mode="json") for r in store.all()],
        }
    except ModsyncError as e:
        print(e.user_message, file=sys.stderr)
        raise SystemExit(1)

    text = json.dumps(payload, indent=2, sort_keys=True)
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            f.write(text + "\n")
        print(f"Exported {len(payload['modules'])} module(s) to {args.out}")
        return
    print(text)


if __name__ == "__main__":
    main()
