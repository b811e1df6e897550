"""
API key management for SciSent.

Provides storage and retrieval of the translation API key using:
1. Environment variables (preferred for CI/production)
2. OS keychain via keyring (secure local storage)
3. Local config file (fallback)

Usage:
    from scisent.keys import KeyManager

    km = KeyManager()
    km.set_key("deepl", "xxxxxxxx-xxxx:fx")
    key = km.get_key("deepl")
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from scisent.config import CONFIG_DIR

logger = logging.getLogger(__name__)

# Supported services and their env var names
SERVICES = {
    "deepl": "DEEPL_API_KEY",
}


@dataclass
class KeyInfo:
    """Information about an API key."""
    service: str
    is_set: bool
    source: str  # 'env', 'keyring', 'config', 'none'
    masked_value: str


class KeyManager:
    """Manage API keys.

    Priority order for key retrieval:
    1. Environment variable
    2. OS keychain (via keyring)
    3. Local config file (~/.scisent/keys.json)
    """

    SERVICE_NAME = "SciSent"

    def __init__(self, config_dir: Path | None = None, use_keyring: bool = True):
        self.config_dir = Path(config_dir) if config_dir else CONFIG_DIR
        self.config_file = self.config_dir / "keys.json"
        self._keyring_available = use_keyring and self._check_keyring()

    def _check_keyring(self) -> bool:
        """Check if a usable keyring backend is installed."""
        try:
            import keyring
            from keyring.backends import fail

            return not isinstance(keyring.get_keyring(), fail.Keyring)
        except Exception:
            return False

    def _env_var(self, service: str) -> str:
        return SERVICES.get(service, f"{service.upper()}_API_KEY")

    def _read_config(self) -> dict:
        if not self.config_file.exists():
            return {}
        try:
            return json.loads(self.config_file.read_text())
        except (OSError, ValueError) as e:
            logger.warning("Unreadable key file %s: %s", self.config_file, e)
            return {}

    def _lookup(self, service: str) -> tuple[Optional[str], str]:
        if env_val := os.getenv(self._env_var(service)):
            return env_val, "env"

        if self._keyring_available:
            try:
                import keyring
                if key := keyring.get_password(self.SERVICE_NAME, service):
                    return key, "keyring"
            except Exception as e:
                logger.debug("Keyring lookup failed for %s: %s", service, e)

        if key := self._read_config().get(service):
            return key, "config"

        return None, "none"

    def get_key(self, service: str) -> Optional[str]:
        """Get API key for a service, or None if not configured."""
        key, _ = self._lookup(service.lower())
        return key

    def set_key(self, service: str, key: str, use_keyring: bool = True) -> str:
        """Store API key for a service.

        Returns:
            Storage location used ('keyring' or 'config')
        """
        service = service.lower()

        if use_keyring and self._keyring_available:
            try:
                import keyring
                keyring.set_password(self.SERVICE_NAME, service, key)
                return "keyring"
            except Exception as e:
                logger.debug("Keyring write failed for %s: %s", service, e)

        self.config_dir.mkdir(parents=True, exist_ok=True)
        config = self._read_config()
        config[service] = key
        self.config_file.write_text(json.dumps(config, indent=2))
        self.config_file.chmod(0o600)
        return "config"

    def delete_key(self, service: str) -> bool:
        """Delete stored API key for a service."""
        service = service.lower()
        deleted = False

        if self._keyring_available:
            try:
                import keyring
                keyring.delete_password(self.SERVICE_NAME, service)
                deleted = True
            except Exception as e:
                logger.debug("Keyring delete failed for %s: %s", service, e)

        config = self._read_config()
        if service in config:
            del config[service]
            self.config_file.write_text(json.dumps(config, indent=2))
            deleted = True

        return deleted

    def get_key_info(self, service: str) -> KeyInfo:
        """Get information about a stored key."""
        service = service.lower()
        key, source = self._lookup(service)
        return KeyInfo(
            service=service,
            is_set=key is not None,
            source=source,
            masked_value=self._mask_key(key) if key else "",
        )

    def list_keys(self) -> list[KeyInfo]:
        """List all supported services and their key status."""
        return [self.get_key_info(service) for service in SERVICES]

    def _mask_key(self, key: str) -> str:
        """Mask a key for display (show first 4 and last 4 chars)."""
        if len(key) <= 12:
            return "*" * len(key)
        return f"{key[:4]}...{key[-4:]}"


def get_key(service: str) -> Optional[str]:
    """Convenience function to get an API key."""
    return KeyManager().get_key(service)
