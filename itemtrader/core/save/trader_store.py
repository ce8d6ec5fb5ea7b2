from __future__ import annotations

import logging
import os
from pathlib import Path
import re
import tempfile
from typing import Any

from itemtrader.config import DATA_DIR, TraderConfig
from itemtrader.core.engine.trader_account import TraderAccount

from .json_codec import TraderDataError
from .state_codec import dumps_state, loads_state


LOG = logging.getLogger(__name__)

_STATE_SUFFIX = ".trader"
_BACKUP_SUFFIX = ".bak"


def safe_id(value: object, *, fallback: str = "unknown") -> str:
    text = re.sub(r"[^a-zA-Z0-9._-]+", "_", str(value or "").strip())
    text = text.strip("._-")
    if not text:
        return fallback
    return text[:180]


class TraderStore:
    """Runtime trader snapshots on disk, one file per trader id."""

    def __init__(self, *, data_dir: str = DATA_DIR, config: TraderConfig | None = None) -> None:
        self.data_dir = Path(data_dir)
        self.config = config or TraderConfig()
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, trader_id: str) -> Path:
        return self.data_dir / f"{safe_id(trader_id)}{_STATE_SUFFIX}"

    def _backup_path(self, path: Path) -> Path:
        return path.with_name(path.name + _BACKUP_SUFFIX)

    def _atomic_write_bytes(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp.write(content)
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_path = Path(tmp.name)
        os.replace(tmp_path, path)

    def list_ids(self) -> list[str]:
        return [path.stem for path in sorted(self.data_dir.glob(f"*{_STATE_SUFFIX}"))]

    def save(self, account: TraderAccount) -> Path:
        if not account.trader_id:
            raise ValueError("cannot save a trader without an id")
        path = self.path_for(account.trader_id)
        if path.exists():
            self._atomic_write_bytes(self._backup_path(path), path.read_bytes())
        self._atomic_write_bytes(path, dumps_state(account))
        return path

    def load(self, trader_id: str, **account_kwargs: Any) -> TraderAccount | None:
        path = self.path_for(trader_id)
        if not path.exists():
            return None
        try:
            return loads_state(path.read_bytes(), config=self.config, **account_kwargs)
        except TraderDataError as e:
            backup = self._backup_path(path)
            if not backup.exists():
                raise
            LOG.warning("Trader %s is unreadable (%s), restoring backup", trader_id, e)
            account = loads_state(backup.read_bytes(), config=self.config, **account_kwargs)
            self._atomic_write_bytes(path, backup.read_bytes())
            return account

    def delete(self, trader_id: str) -> bool:
        path = self.path_for(trader_id)
        if not path.exists():
            return False
        path.unlink()
        backup = self._backup_path(path)
        if backup.exists():
            backup.unlink()
        return True
