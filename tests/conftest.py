from __future__ import annotations

from pathlib import Path
import sys


import pytest


# Ensure the repository root (parent of ./tests) is importable during pytest collection.
# This avoids ModuleNotFoundError for imports like `import nedb_storage...` under pytest import modes
# that don't automatically prepend the cwd/rootdir to sys.path.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


@pytest.fixture
def sandbox_storage(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """
    Redirect storage roots to a temp directory so tests never touch /var/lib/whaler.
    """
    from nedb_storage.handle import GLOBAL_STORE_HANDLES

    GLOBAL_STORE_HANDLES.clear()
    storage = tmp_path / "storage"
    monkeypatch.setenv("WHALER_STORAGE_ROOT", str(storage))
    monkeypatch.setenv("WHALER_NEDB_ROOT", str(storage / "nedb"))
    monkeypatch.setenv("NEDB_LOAD_RETRY_DELAY", "0.001")
    monkeypatch.setenv("NEDB_LOAD_MAX_ATTEMPTS", "3")
    return storage


@pytest.fixture
def nedb_root(sandbox_storage: Path) -> Path:
    return sandbox_storage / "nedb"
