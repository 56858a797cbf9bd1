from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RuntimePaths:
    root: Path
    db_path: Path
    logs_dir: Path
    exports_dir: Path


def build_runtime_paths(root: Path) -> RuntimePaths:
    db_path = root / "db" / "sustainify.sqlite3"
    logs_dir = root / "logs"
    exports_dir = root / "exports"

    db_path.parent.mkdir(parents=True, exist_ok=True)
    logs_dir.mkdir(parents=True, exist_ok=True)
    exports_dir.mkdir(parents=True, exist_ok=True)

    return RuntimePaths(
        root=root,
        db_path=db_path,
        logs_dir=logs_dir,
        exports_dir=exports_dir,
    )


def get_runtime_paths() -> RuntimePaths:
    env_path = os.environ.get("SUSTAINIFY_RUNTIME_DIR", "").strip()
    if env_path:
        root = Path(env_path)
    else:
        root = Path(__file__).resolve().parents[2] / "runtime-data"

    return build_runtime_paths(root)
