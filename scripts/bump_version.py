#!/usr/bin/env python3
"""Set the integration version in manifest.json and pyproject.toml."""

from __future__ import annotations

import argparse
import json
import re
from pathlib import Path

_VERSION_RE = re.compile(r"^\d+\.\d+\.\d+(?:[-.][0-9A-Za-z.]+)?$")
_MANIFEST = Path("custom_components/muscle_plan_builder/manifest.json")
_PYPROJECT = Path("pyproject.toml")


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser()
    p.add_argument("--version", required=True, help="New version, e.g. 0.1.1")
    return p.parse_args()


def main() -> int:
    args = parse_args()
    version = str(args.version).strip()
    if not _VERSION_RE.match(version):
        raise SystemExit(f"Invalid --version: {version!r}")

    manifest = json.loads(_MANIFEST.read_text(encoding="utf-8"))
    previous = manifest.get("version")
    manifest["version"] = version
    _MANIFEST.write_text(json.dumps(manifest, indent=2) + "\n", encoding="utf-8")

    if _PYPROJECT.exists():
        raw = _PYPROJECT.read_text(encoding="utf-8")
        updated = re.sub(r'(?m)^version = "[^"]*"$', f'version = "{version}"', raw, count=1)
        _PYPROJECT.write_text(updated, encoding="utf-8")

    print(f"Version {previous} -> {version}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
