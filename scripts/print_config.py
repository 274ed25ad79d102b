from __future__ import annotations

import argparse
import json

from modsync.core.config import ConfigManager
from modsync.core.config.paths import ConfigFsPaths


def main() -> None:
    ap = argparse.ArgumentParser(description="Print the resolved modsync configuration as JSON.")
    ap.add_argument("--root", default=".", help="Project root (default: .)")
    args = ap.parse_args()

    cm = ConfigManager(fs=ConfigFsPaths(str(args.root or ".")), logger=None, read_only=True)
    cfg = cm.load_all()
    out = cfg.model_dump()
    out["resolved_paths"] = {
        "modules_dirs": cm.modules_dirs(),
        "vendor_dirs": cm.vendor_dirs(),
        "state_db": cm.state_db_path(),
        "logs_dir": cm.logs_dir(),
        "runtime_dir": cm.runtime_dir(),
        "events_jsonl": cm.events_path(),
    }
    print(json.dumps(out, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
