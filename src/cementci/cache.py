# cache.py
from __future__ import annotations

import glob
import hashlib
import json
import os
import tarfile
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional

# ---------------------------------------------------------------------
# Core idea
# ---------------------------------------------------------------------
# Build, test and publish run as separate processes (often on separate
# machines). The only thing they share is this cache:
#
#   key   = "<namespace>-<qualifier|default>-" + sha256(revision, qualifier)
#   entry = a tar.gz of every file under cache_paths(), saved once by
#           build and only ever restored afterwards.
#
# Layout on disk:
#   root/
#     <key>.tar.gz
#     <key>.manifest.json
# ---------------------------------------------------------------------


DEFAULT_CACHE_DIR = ".cementci/cache"
KEY_NAMESPACE = "tests"
KEY_VERSION = 1  # bump this if you change the key format


@dataclass(frozen=True)
class CacheHit:
    hit: bool
    key: str
    reason: str  # human readable
    manifest: Dict = field(default_factory=dict)


@dataclass(frozen=True)
class CacheSaved:
    saved: bool
    key: str
    reason: str
    files: int = 0


def _sha256_str(s: str) -> str:
    return hashlib.sha256(s.encode("utf-8")).hexdigest()


def _json_dumps_stable(obj) -> str:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _iter_files_under(root: Path) -> Iterable[Path]:
    # deterministic traversal
    for p in sorted(root.rglob("*")):
        if p.is_file():
            yield p


def expand_cache_paths(patterns: List[str]) -> List[Path]:
    """
    Expand cache path patterns (globs, `~`) into existing paths.
    Order follows the patterns, then sorted matches; duplicates dropped.
    """
    out: List[Path] = []
    seen = set()
    for pat in patterns:
        for m in sorted(glob.glob(os.path.expanduser(pat))):
            p = Path(m).resolve()
            if str(p) not in seen:
                seen.add(str(p))
                out.append(p)
    return out


class CacheKeyDeriver:
    """
    Derives cache keys for one revision and the paths worth caching for
    one module.
    """

    def __init__(self, revision: str, module_folder: str | Path, home: str | Path | None = None):
        self.revision = revision
        self.module_folder = Path(module_folder)
        self.home = Path(home) if home is not None else Path.home()

    def derive_key(self, qualifier: Optional[str] = None) -> str:
        """
        Same revision and qualifier always give the same key. No qualifier is
        the build -> test channel; a qualifier (e.g. "nuget") is a separate
        channel that never shares entries with it.
        """
        payload = {"v": KEY_VERSION, "revision": self.revision, "qualifier": qualifier}
        digest = _sha256_str(_json_dumps_stable(payload))
        return f"{KEY_NAMESPACE}-{qualifier or 'default'}-{digest}"

    def cache_paths(self) -> List[str]:
        module = self.module_folder.as_posix()
        return [
            f"{module}/*/bin",
            f"{module}/*/obj",
            (self.home / ".nuget" / "packages").as_posix(),
        ]


class CacheStore:
    """File-based cache store, one archive + manifest per key."""

    def __init__(self, root: str | Path = DEFAULT_CACHE_DIR):
        self.root = Path(root).resolve()
        self.root.mkdir(parents=True, exist_ok=True)

    def artifact_path(self, key: str) -> Path:
        return self.root / f"{key}.tar.gz"

    def manifest_path(self, key: str) -> Path:
        return self.root / f"{key}.manifest.json"

    def restore(self, paths: List[str], key: str) -> CacheHit:
        """
        Extract the entry for `key` back onto the filesystem.

        NOTE: restore is "overwrite by extraction". A missing or unreadable
        entry is a miss; callers decide whether that matters.
        """
        art = self.artifact_path(key)
        man = self.manifest_path(key)

        if not art.exists() or not man.exists():
            return CacheHit(hit=False, key=key, reason="cache miss")

        try:
            manifest = json.loads(man.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            return CacheHit(hit=False, key=key, reason=f"cache exists but manifest unreadable: {e}")

        anchor = manifest.get("anchor") or Path.cwd().anchor
        try:
            with tarfile.open(str(art), mode="r:gz") as tar:
                if hasattr(tarfile, "data_filter"):
                    tar.extractall(path=anchor, filter="data")
                else:
                    tar.extractall(path=anchor)
        except (OSError, tarfile.TarError) as e:
            return CacheHit(hit=False, key=key, reason=f"cache exists but restore failed: {e}", manifest=manifest)

        if manifest.get("paths") != list(paths):
            reason = "cache hit: restored artifact (saved with different paths)"
        else:
            reason = "cache hit: restored artifact"
        return CacheHit(hit=True, key=key, reason=reason, manifest=manifest)

    def save(self, paths: List[str], key: str) -> CacheSaved:
        """
        Archive every file under `paths` as the entry for `key`.

        Entries are write-once: if `key` already exists nothing is written.
        """
        art = self.artifact_path(key)
        man = self.manifest_path(key)
        if art.exists() and man.exists():
            return CacheSaved(saved=False, key=key, reason="entry already exists")

        sources = expand_cache_paths(paths)
        anchor = Path(sources[0].anchor) if sources else Path(Path.cwd().anchor)

        files: List[str] = []
        tmp = art.with_suffix(".gz.tmp")
        try:
            # Build tar.gz in tmp, then atomic rename
            with tarfile.open(str(tmp), mode="w:gz") as tar:
                for src in sources:
                    items = [src] if src.is_file() else list(_iter_files_under(src))
                    for f in items:
                        arcname = f.relative_to(anchor).as_posix()
                        tar.add(str(f), arcname=arcname, recursive=False)
                        files.append(arcname)

            manifest = {
                "key": key,
                "paths": list(paths),
                "anchor": str(anchor),
                "files": len(files),
                "generated_at_unix": int(time.time()),
            }
            tmp.replace(art)
            man.write_text(json.dumps(manifest, sort_keys=True, indent=2, ensure_ascii=False), encoding="utf-8")
        finally:
            if tmp.exists():
                tmp.unlink(missing_ok=True)

        if not files:
            return CacheSaved(saved=True, key=key, reason="saved (no files matched)", files=0)
        return CacheSaved(saved=True, key=key, reason="saved", files=len(files))
