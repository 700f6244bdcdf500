"""
API key authentication for the bet ledger.

Each ledger owner has one key, configured as ``API_KEY_USER<n>=<key>``;
the ledger rows are keyed by the resulting ``user<n>`` id.  Owners listed
in ``LEDGER_ADMINS`` (default ``user1``) may also hit the admin routes.
The keyring is read from the environment on first use, not at import.
"""

import os
import re
import secrets
from dataclasses import dataclass
from typing import Dict, FrozenSet, Mapping, Optional

from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader

from backend.config import get_settings

API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)

DEV_API_KEY = "dev-key-insecure"
DEV_USER = "dev_user"
DEFAULT_ADMINS = "user1"

_KEY_VARIABLE = re.compile(r"^API_KEY_USER(\d+)$")


@dataclass(frozen=True)
class LedgerKeyring:
    """Maps API keys to ledger owner ids."""

    owners: Mapping[str, str]
    admins: FrozenSet[str]

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, development: bool = False) -> "LedgerKeyring":
        environ = os.environ if environ is None else environ
        owners: Dict[str, str] = {}
        for variable, key in environ.items():
            match = _KEY_VARIABLE.match(variable)
            if match and key.strip():
                owners[key.strip()] = f"user{int(match.group(1))}"

        if not owners:
            if not development:
                raise ValueError("No ledger API keys configured. Set API_KEY_USER1 in the environment")
            owners[DEV_API_KEY] = DEV_USER

        admins = environ.get("LEDGER_ADMINS", DEFAULT_ADMINS)
        return cls(owners, frozenset(a.strip() for a in admins.split(",") if a.strip()))

    def owner_for(self, api_key: str) -> Optional[str]:
        # compare every key so lookup time does not depend on which one matched
        owner = None
        for key, candidate in self.owners.items():
            if secrets.compare_digest(key.encode(), api_key.encode()):
                owner = candidate
        return owner

    def is_admin(self, owner: str) -> bool:
        return owner in self.admins


_keyring: Optional[LedgerKeyring] = None


def get_keyring() -> LedgerKeyring:
    global _keyring
    if _keyring is None:
        _keyring = LedgerKeyring.from_env(development=get_settings().is_development)
    return _keyring


def reset_api_keys() -> None:
    """Forget the cached keyring so the next request re-reads the environment."""
    global _keyring
    _keyring = None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "ApiKey"},
    )


async def verify_api_key(api_key: str = Security(API_KEY_HEADER)) -> str:
    """Ledger owner id for the ``X-API-Key`` header, or 401."""
    if not api_key:
        raise _unauthorized("API key required. Include 'X-API-Key' header.")

    owner = get_keyring().owner_for(api_key)
    if owner is None:
        raise _unauthorized("Invalid API key")
    return owner


async def verify_admin_api_key(user: str = Security(verify_api_key)) -> str:
    if not get_keyring().is_admin(user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user
