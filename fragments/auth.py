"""HTTP Basic authentication against an htpasswd file."""

import hashlib
import secrets
from pathlib import Path
from typing import Dict

import bcrypt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from common.logging_config import get_logger
from fragments import config

logger = get_logger(__name__)

security = HTTPBasic(realm="fragments")

# A syntactically valid hash that no password matches, so unknown users
# cost the same bcrypt round as known ones.
_DUMMY_HASH = bcrypt.hashpw(secrets.token_bytes(16), bcrypt.gensalt(rounds=4)).decode("utf-8")


def hash_password(password: str, rounds: int = 12) -> str:
    """
    Hash a password using bcrypt, in the form htpasswd -B writes.

    Args:
        password: Plain text password to hash
        rounds: bcrypt cost factor

    Returns:
        Bcrypt hash of the password
    """
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds))
    return hashed.decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify a password against a bcrypt hash.

    Apache writes bcrypt hashes with the '$2y$' prefix, which is the same
    algorithm as '$2b$'.

    Args:
        password: Plain text password to verify
        password_hash: Bcrypt hash to verify against

    Returns:
        True if password matches hash, False otherwise
    """
    if password_hash.startswith("$2y$"):
        password_hash = "$2b$" + password_hash[4:]
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Unsupported password hash format in htpasswd file")
        return False


def load_htpasswd(path: str) -> Dict[str, str]:
    """
    Read "user:hash" lines from an htpasswd file.

    Args:
        path: Path to the htpasswd file

    Returns:
        Mapping of user name to password hash
    """
    users: Dict[str, str] = {}
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or ":" not in line:
            continue
        user, password_hash = line.split(":", 1)
        users[user] = password_hash
    return users


def hash_owner_id(email: str) -> str:
    """
    Derive the opaque owner id of a user.

    Args:
        email: The authenticated user's email

    Returns:
        SHA-256 hex digest of the email
    """
    return hashlib.sha256(email.encode("utf-8")).hexdigest()


async def get_current_owner(
    request: Request,
    credentials: HTTPBasicCredentials = Depends(security),
) -> str:
    """
    FastAPI dependency to authenticate a request and resolve its owner id.

    Returns:
        Hashed owner id of the authenticated user

    Raises:
        HTTPException: 401 if the credentials are invalid
        HTTPException: 500 if HTPASSWD_FILE is not configured
    """
    if not config.HTPASSWD_FILE:
        logger.error("missing expected env var: HTPASSWD_FILE")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="authentication is not configured",
        )

    users = load_htpasswd(config.HTPASSWD_FILE)
    password_hash = users.get(credentials.username)

    valid = verify_password(credentials.password, password_hash or _DUMMY_HASH)

    if password_hash is None or not valid:
        logger.warning(f"Authentication failed for user {credentials.username}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": 'Basic realm="fragments"'},
        )

    owner_id = hash_owner_id(credentials.username)
    request.state.owner_id = owner_id
    logger.debug(f"Authenticated user [owner_id={owner_id}]")
    return owner_id
