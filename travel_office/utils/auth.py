# travel_office/utils/auth.py
from __future__ import annotations

from typing import Union

import bcrypt

_BCRYPT_DEFAULT_ROUNDS = 12          # used when hashing
_BCRYPT_MIN_ACCEPTABLE_ROUNDS = 12   # rehash if lower than this
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def _parse_bcrypt_cost(hash_str: str) -> int | None:
    """
    Extract the cost from a bcrypt hash: $2b$12$...
    Returns None if not parseable.
    """
    parts = hash_str.split("$")
    # ['', '2b', '12', 'rest...']
    if len(parts) < 4:
        return None
    try:
        return int(parts[2])
    except ValueError:
        return None


def hash_password(password: str, *, rounds: int = _BCRYPT_DEFAULT_ROUNDS) -> str:
    """
    Hash `password` with bcrypt. `rounds` is floored at 4 (bcrypt's own minimum);
    needs_rehash() flags anything under the policy minimum.
    """
    if not isinstance(password, str) or password == "":
        raise ValueError("Password must be a non-empty string")
    rounds = max(4, int(rounds))
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def verify_password(password: str, stored_hash: Union[str, bytes, None]) -> bool:
    """Verify `password` against a bcrypt hash. Unknown formats never verify."""
    if not stored_hash or password is None:
        return False
    if isinstance(stored_hash, bytes):
        stored_hash = stored_hash.decode("utf-8", errors="replace")
    h = stored_hash.strip()
    if not h.startswith(_BCRYPT_PREFIXES):
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), h.encode("utf-8"))
    except ValueError:
        # malformed salt
        return False


def needs_rehash(stored_hash: Union[str, bytes, None], *, min_rounds: int = _BCRYPT_MIN_ACCEPTABLE_ROUNDS) -> bool:
    """True if the stored hash is missing, not bcrypt, or below the minimum cost."""
    if not stored_hash:
        return True
    if isinstance(stored_hash, bytes):
        stored_hash = stored_hash.decode("utf-8", errors="replace")
    h = stored_hash.strip()
    if not h.startswith(_BCRYPT_PREFIXES):
        return True
    cost = _parse_bcrypt_cost(h)
    return cost is None or cost < min_rounds
