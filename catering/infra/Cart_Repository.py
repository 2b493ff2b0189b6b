"""Cart repositories: one capability set ({list, put, remove, clear}) over two stores.

LocalCartRepository keeps anonymous carts in a JSON file on this device.
The remote implementation lives in Remote_Cart_Repository; which one is
active is decided by select_cart_repository() from an explicit AuthState.
"""
from __future__ import annotations
import json
import logging
import os
import shutil
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, TYPE_CHECKING
from uuid import uuid4

from catering.domain.CartLine import CartLine, utc_now
from catering.domain.errors import PersistenceFailure, ValidationError
from catering.infra.paths import LOCAL_CART_FILE
from catering.utilities.constants import LOCAL_ID_PREFIX
from catering.utilities.validators import parse_cart_line

if TYPE_CHECKING:
    from catering.infra.Remote_Cart_Repository import RemoteCartClient

logger = logging.getLogger(__name__)


class AuthState:
    """Who currently owns the cart. owner_id None means anonymous."""

    def __init__(self, owner_id: Optional[str] = None):
        self.owner_id = owner_id

    @property
    def is_authenticated(self) -> bool:
        return bool(self.owner_id)

    @classmethod
    def anonymous(cls) -> "AuthState":
        return cls(None)

    def __repr__(self) -> str:
        return f"AuthState({self.owner_id or 'anonymous'})"


class CartRepository(ABC):
    """Storage strategy for cart lines of a single owner."""

    name: str = "cart"

    @abstractmethod
    def list_lines(self) -> List[CartLine]:
        """Return every stored line."""

    @abstractmethod
    def put_line(self, line: CartLine) -> CartLine:
        """Create or replace a line; returns the stored line (ids may be assigned)."""

    @abstractmethod
    def remove_line(self, line_id: str) -> None:
        """Delete a line; unknown ids are a no-op."""

    def clear(self) -> None:
        for line in self.list_lines():
            self.remove_line(line.id)

    def find_by_package(self, package_id: str) -> Optional[CartLine]:
        for line in self.list_lines():
            if line.package_id == package_id:
                return line
        return None


def new_local_id() -> str:
    return f"{LOCAL_ID_PREFIX}{uuid4().hex[:12]}"


def atomic_write_json(path: Path, entries: List[dict]) -> None:
    """Write a JSON list through a temp file in the same directory, then move it into place."""
    path = Path(path)
    try:
        os.makedirs(path.parent, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=".cart_", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(entries, tmp, indent=2, ensure_ascii=False)
            shutil.move(tmp_path, path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
    except OSError as e:
        raise PersistenceFailure(f"Cannot write cart file {path}: {e}", cause=e) from e


class LocalCartRepository(CartRepository):
    """Anonymous cart persisted as a JSON list in a single file."""

    name = "local"

    def __init__(self, path: Optional[Path] = None, *, owner_id: Optional[str] = None,
                 id_factory=new_local_id):
        self.path = Path(path) if path is not None else LOCAL_CART_FILE
        self.owner_id = owner_id
        self._new_id = id_factory

    # --- raw file access ----------------------------------------------------
    def _read(self) -> List[dict]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise PersistenceFailure(f"Corrupt cart file {self.path}: {e}", cause=e) from e
        except OSError as e:
            raise PersistenceFailure(f"Cannot read cart file {self.path}: {e}", cause=e) from e
        return data if isinstance(data, list) else []

    def _atomic_write(self, entries: List[dict]) -> None:
        atomic_write_json(self.path, entries)

    # --- CartRepository -----------------------------------------------------
    def list_lines(self) -> List[CartLine]:
        lines = []
        for entry in self._read():
            try:
                lines.append(parse_cart_line(entry))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable cart entry in {self.path}: {e}")
        return lines

    def put_line(self, line: CartLine) -> CartLine:
        entries = self._read()
        now = utc_now()
        for idx, entry in enumerate(entries):
            same_package = entry.get("package_id") == line.package_id
            same_id = line.id is not None and entry.get("id") == line.id
            if same_package or same_id:
                stored = line.copy(id=entry.get("id") or line.id or self._new_id(),
                                   owner_id=self.owner_id,
                                   created_at=entry.get("created_at") or line.created_at,
                                   updated_at=now)
                entries[idx] = stored.to_dict()
                self._atomic_write(entries)
                return stored
        stored = line.copy(id=line.id or self._new_id(), owner_id=self.owner_id,
                           created_at=now, updated_at=now)
        entries.append(stored.to_dict())
        self._atomic_write(entries)
        return stored

    def remove_line(self, line_id: str) -> None:
        entries = self._read()
        kept = [e for e in entries if e.get("id") != line_id]
        if len(kept) != len(entries):
            self._atomic_write(kept)

    def clear(self) -> None:
        if self.path.exists():
            self._atomic_write([])

    # --- storefront names -----------------------------------------------------
    def get_local_cart_lines(self) -> List[CartLine]:
        return self.list_lines()

    def put_local_cart_line(self, line: CartLine) -> CartLine:
        return self.put_line(line)

    def remove_local_cart_line(self, line_id: str) -> None:
        self.remove_line(line_id)


def select_cart_repository(auth: AuthState, local: LocalCartRepository,
                           remote_client: Optional["RemoteCartClient"] = None) -> CartRepository:
    """Pick the store that owns the cart for the given authentication state."""
    if not auth.is_authenticated:
        return local
    if remote_client is None:
        raise ValidationError("An authenticated cart needs a remote cart client")
    from catering.infra.Remote_Cart_Repository import RemoteCartRepository
    return RemoteCartRepository(remote_client, auth.owner_id)


__all__ = [
    'AuthState', 'CartRepository', 'LocalCartRepository', 'select_cart_repository', 'new_local_id',
    'atomic_write_json',
]
