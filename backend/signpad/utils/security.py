import secrets
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

ph = PasswordHasher(time_cost=3, memory_cost=65536, parallelism=4)


def hash_admin_token(token: str) -> str:
    return ph.hash(token)


def verify_admin_token(stored_hash: str, token: str) -> bool:
    try:
        return ph.verify(stored_hash, token)
    except (VerificationError, InvalidHashError):
        return False


def generate_token(nbytes: int = 16) -> str:
    return secrets.token_hex(nbytes)


def generate_temp_id() -> str:
    """Short placeholder id used in signature filenames before the row id exists."""
    return secrets.token_hex(7)[:13]
