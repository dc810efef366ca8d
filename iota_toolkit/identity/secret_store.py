"""
Secret storage for seeds and mnemonics.

The toolkit only depends on the ``get_secret``/``set_secret`` contract, so
any vault can be plugged in by implementing :class:`SecretStore`.
"""
import os
import json
import stat
import logging
import threading
from pathlib import Path
from typing import Dict, Any, Optional, Protocol

import portalocker

from ..exceptions import SecretNotFoundError

logger = logging.getLogger(__name__)


class SecretStore(Protocol):
    """Protocol for secret stores"""

    def get_secret(self, key: str) -> str:
        """Return the secret stored under key, raising SecretNotFoundError if absent"""
        ...

    def set_secret(self, key: str, value: str) -> None:
        """Store a secret under key"""
        ...


class InMemorySecretStore:
    """Process-local secret store, mainly for tests and short-lived tools"""

    def __init__(self, secrets: Optional[Dict[str, str]] = None):
        self._secrets: Dict[str, str] = dict(secrets or {})
        self._lock = threading.RLock()

    def get_secret(self, key: str) -> str:
        with self._lock:
            if key not in self._secrets:
                raise SecretNotFoundError("Secret not found", source="SecretStore", properties={"key": key})
            return self._secrets[key]

    def set_secret(self, key: str, value: str) -> None:
        with self._lock:
            self._secrets[key] = value

    def delete_secret(self, key: str) -> None:
        with self._lock:
            self._secrets.pop(key, None)


class FileSecretStore:
    """Thread-safe and process-safe secret store backed by a JSON file"""

    def __init__(self, store_path: Optional[str] = None):
        """
        Initialize the secret store.

        Args:
            store_path: Optional custom path for the store file
        """
        # Use IOTA_SECRET_STORE_PATH env var or default to ~/.iota-toolkit/secrets.json
        if store_path:
            self.store_path = Path(store_path)
        else:
            default_path = os.environ.get(
                "IOTA_SECRET_STORE_PATH",
                os.path.expanduser("~/.iota-toolkit/secrets.json")
            )
            self.store_path = Path(default_path)

        self._ensure_dir()

    def _ensure_dir(self):
        """Ensure the store directory and file exist with owner-only permissions"""
        directory = self.store_path.parent

        if not directory.exists():
            directory.mkdir(parents=True, exist_ok=True)
            if os.name == 'posix':
                os.chmod(directory, stat.S_IRUSR | stat.S_IWUSR | stat.S_IXUSR)  # 0700

        if not self.store_path.exists():
            with open(self.store_path, 'w') as f:
                json.dump({"secrets": {}}, f)

        if os.name == 'posix':
            os.chmod(self.store_path, stat.S_IRUSR | stat.S_IWUSR)  # 0600
        elif os.name == 'nt':
            logger.info("Windows file permissions cannot be restricted to current user only."
                        " Consider using a managed vault for production environments.")

    def _get_lock_path(self) -> str:
        return str(self.store_path) + '.lock'

    def _read(self) -> Dict[str, Any]:
        with open(self.store_path, 'r') as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError:
                logger.warning(f"Secret store {self.store_path} is empty or corrupt, treating as empty")
                return {"secrets": {}}
        data.setdefault("secrets", {})
        return data

    def get_secret(self, key: str) -> str:
        """
        Read a secret.

        Args:
            key: Secret key, typically ``"{identity}/{secret_id}"``

        Returns:
            The stored secret

        Raises:
            SecretNotFoundError: If no secret is stored under key
        """
        with portalocker.Lock(self._get_lock_path(), timeout=10):
            secrets = self._read()["secrets"]
        if key not in secrets:
            raise SecretNotFoundError("Secret not found", source="SecretStore", properties={"key": key})
        return secrets[key]

    def set_secret(self, key: str, value: str) -> None:
        """
        Store a secret, replacing any existing value.

        Args:
            key: Secret key
            value: Secret value
        """
        with portalocker.Lock(self._get_lock_path(), timeout=10):
            data = self._read()
            data["secrets"][key] = value
            with open(self.store_path, 'w') as f:
                json.dump(data, f, indent=2)

    def delete_secret(self, key: str) -> None:
        """Delete a secret if present"""
        with portalocker.Lock(self._get_lock_path(), timeout=10):
            data = self._read()
            if key in data["secrets"]:
                del data["secrets"][key]
                with open(self.store_path, 'w') as f:
                    json.dump(data, f, indent=2)
