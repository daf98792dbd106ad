"""Benchmark workspace management.

Creates isolated directories with pinned package versions for running
benchmarks against different trio releases.

Supports two modes:
- Temporary workspace (default): fresh install, removed on scope exit
- Cached workspace: persistent directory keyed by the version set, install
  skipped when ``site-packages`` already exists. Each request gets its own
  ``runs/<id>/`` directory holding the harness, removed on scope exit.

A workspace contains:
- requirements.txt pinning trio and the comparison libraries
- site-packages/ populated by ``pip install --target``
- scbench/ with the harness, scenarios and stats module (per run directory
  in cached mode, next to a ``site-packages`` symlink)
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import shlex
import shutil
import subprocess
import sys
import tempfile
import uuid
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path

from scbench.errors import InstallError

logger = logging.getLogger(__name__)

TARGET_LIBRARY = "trio"
PACKAGES_DIR = "site-packages"
REQUIREMENTS_FILE = "requirements.txt"
RUNS_DIR = "runs"
DEFAULT_INSTALL_TIMEOUT = 900.0

# ``{target}`` is replaced by the directory pip installs into
DEFAULT_INSTALL_COMMAND: tuple[str, ...] = (
    sys.executable,
    "-m",
    "pip",
    "install",
    "--quiet",
    "--disable-pip-version-check",
    "--no-input",
    "--target",
    "{target}",
    "-r",
    REQUIREMENTS_FILE,
)

# Copied into <workspace>/scbench/, relative to the scbench package
SOURCE_DIR = Path(__file__).resolve().parent
WORKSPACE_ITEMS = ("stats.py", "harness", "scenarios")


@dataclass(frozen=True)
class WorkspaceConfig:
    """Workspace configuration.

    Attributes:
        target_version: trio version to install (e.g., "0.27.0").
        comparison_versions: Comparison library name -> version.
        use_cache: Use a persistent cache directory instead of a temp dir.
        cache_root: Cache location (default: get_cache_dir()).
        install_command: Install argument list; ``{target}`` is substituted.
        install_timeout: Seconds before the install step is killed.
    """

    target_version: str
    comparison_versions: Mapping[str, str] = field(default_factory=dict)
    use_cache: bool = False
    cache_root: Path | None = None
    install_command: tuple[str, ...] | None = None
    install_timeout: float = DEFAULT_INSTALL_TIMEOUT


@dataclass(frozen=True)
class Workspace:
    """A prepared benchmark workspace.

    Attributes:
        path: Harness working directory (holds scbench/ and site-packages/).
        cache_key: Cache key, or None for temporary workspaces.
        installed: Whether dependencies were installed by this provision.
        cache_dir: Shared cache entry, or None for temporary workspaces.
    """

    path: Path
    cache_key: str | None = None
    installed: bool = False
    cache_dir: Path | None = None

    @property
    def cached(self) -> bool:
        return self.cache_key is not None


def get_cache_dir() -> Path:
    override = os.environ.get("SCBENCH_CACHE_DIR")
    if override:
        return Path(override)
    return Path.home() / ".cache" / "scbench"


def compute_cache_key(config: WorkspaceConfig) -> str:
    """Stable key for a version set: first 16 hex chars of a SHA-256."""
    payload = json.dumps(
        {
            "targetVersion": config.target_version,
            "comparisonVersions": dict(config.comparison_versions),
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()[:16]


def generate_requirements(config: WorkspaceConfig) -> str:
    lines = [f"{TARGET_LIBRARY}=={config.target_version}"]
    lines.extend(
        f"{name}=={version}" for name, version in sorted(config.comparison_versions.items())
    )
    return "\n".join(lines) + "\n"


def has_packages(workspace_dir: Path) -> bool:
    return (workspace_dir / PACKAGES_DIR).is_dir()


def _install_command(config: WorkspaceConfig, target: Path) -> list[str]:
    template = config.install_command or DEFAULT_INSTALL_COMMAND
    return [arg.replace("{target}", str(target)) for arg in template]


def install_dependencies(workspace_dir: Path, target: Path, config: WorkspaceConfig) -> None:
    """Install the pinned requirements of a workspace into ``target``.

    Raises:
        InstallError: If the install command fails, cannot start or times out.
    """
    command = _install_command(config, target)
    logger.info("Installing workspace dependencies in %s", workspace_dir)
    logger.debug("Install command: %s", shlex.join(command))
    try:
        result = subprocess.run(
            command,
            cwd=workspace_dir,
            capture_output=True,
            text=True,
            timeout=config.install_timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as e:
        raise InstallError(
            f"Dependency install timed out after {config.install_timeout:.0f}s"
        ) from e
    except OSError as e:
        raise InstallError(f"Dependency install could not start: {e}") from e

    if result.returncode != 0:
        raise InstallError(
            f"Dependency install failed (exit code {result.returncode}): "
            f"{result.stderr.strip()}",
            returncode=result.returncode,
            stderr=result.stderr,
        )


def _install_into_cache(workspace_dir: Path, config: WorkspaceConfig) -> bool:
    """Install into a staging directory, then rename it into place.

    Returns:
        True if this call's install became the workspace's packages, False
        if a concurrent provisioner finished first.
    """
    staging = workspace_dir / f".{PACKAGES_DIR}-{uuid.uuid4().hex[:8]}"
    try:
        install_dependencies(workspace_dir, staging, config)
        # Some install commands create nothing for an empty requirement set
        staging.mkdir(exist_ok=True)
        try:
            staging.rename(workspace_dir / PACKAGES_DIR)
        except OSError:
            if has_packages(workspace_dir):
                logger.info("Another process populated %s first", workspace_dir)
                return False
            raise
        return True
    finally:
        shutil.rmtree(staging, ignore_errors=True)


def _write_text_atomic(path: Path, text: str) -> None:
    """Replace a file's contents without exposing a partially written file."""
    tmp = path.with_name(f".{path.name}-{uuid.uuid4().hex[:8]}")
    tmp.write_text(text, encoding="utf-8")
    os.replace(tmp, path)


def copy_workspace_files(workspace_dir: Path) -> None:
    """Copy fresh harness and scenario sources into the workspace."""
    package_dir = workspace_dir / "scbench"
    shutil.rmtree(package_dir, ignore_errors=True)
    package_dir.mkdir(parents=True)
    # The installed package __init__ pulls in orchestrator-only dependencies
    (package_dir / "__init__.py").write_text("", encoding="utf-8")

    ignore = shutil.ignore_patterns("__pycache__", "*.pyc")
    for item in WORKSPACE_ITEMS:
        src = SOURCE_DIR / item
        dest = package_dir / item
        if src.is_dir():
            shutil.copytree(src, dest, ignore=ignore)
        else:
            shutil.copy2(src, dest)


def _create_run_dir(cache_dir: Path) -> Path:
    """Private harness directory inside a cache entry.

    Concurrent requests for one entry each get their own copy of the
    sources; the shared packages are reached through a ``site-packages``
    symlink.
    """
    run_dir = cache_dir / RUNS_DIR / uuid.uuid4().hex[:12]
    run_dir.mkdir(parents=True)
    os.symlink(cache_dir / PACKAGES_DIR, run_dir / PACKAGES_DIR, target_is_directory=True)
    return run_dir


@contextmanager
def provision(config: WorkspaceConfig) -> Iterator[Workspace]:
    """Create a benchmark workspace for the duration of a ``with`` block.

    Raises:
        InstallError: If dependencies are missing and the install fails. The
            workspace is not yielded in that case.
    """
    if config.use_cache:
        cache_key = compute_cache_key(config)
        workspace_dir = (config.cache_root or get_cache_dir()) / cache_key
        workspace_dir.mkdir(parents=True, exist_ok=True)
        needs_install = not has_packages(workspace_dir)
        if not needs_install:
            logger.info("Using cached workspace %s", workspace_dir)
    else:
        cache_key = None
        workspace_dir = Path(tempfile.mkdtemp(prefix="scbench-"))
        needs_install = True

    run_dir = None
    try:
        # Always rewritten in case the cached entry predates a manifest change
        _write_text_atomic(workspace_dir / REQUIREMENTS_FILE, generate_requirements(config))

        installed = False
        if needs_install:
            if cache_key is not None:
                installed = _install_into_cache(workspace_dir, config)
            else:
                install_dependencies(workspace_dir, workspace_dir / PACKAGES_DIR, config)
                (workspace_dir / PACKAGES_DIR).mkdir(exist_ok=True)
                installed = True

        if cache_key is not None:
            run_dir = _create_run_dir(workspace_dir)
        else:
            run_dir = workspace_dir
        copy_workspace_files(run_dir)

        yield Workspace(
            path=run_dir,
            cache_key=cache_key,
            installed=installed,
            cache_dir=workspace_dir if cache_key is not None else None,
        )
    finally:
        if cache_key is None:
            shutil.rmtree(workspace_dir, ignore_errors=True)
        elif run_dir is not None:
            shutil.rmtree(run_dir, ignore_errors=True)


def clear_workspace_cache(cache_root: Path | None = None) -> bool:
    """Remove the workspace cache.

    Returns:
        True if a cache directory existed and was removed.
    """
    cache_dir = cache_root or get_cache_dir()
    if not cache_dir.exists():
        return False
    shutil.rmtree(cache_dir)
    logger.info("Cleared workspace cache at %s", cache_dir)
    return True
