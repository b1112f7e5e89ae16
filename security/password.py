import hmac
import secrets

import bcrypt

# bcrypt_pbkdf parameters; stored format is "<hex key>.<hex salt>"
KDF_ROUNDS = 50
KEY_BYTES = 64
SALT_BYTES = 16


def _derive(plain_password: str, salt: bytes) -> bytes:
    return bcrypt.kdf(
        password=plain_password.encode("utf-8"),
        salt=salt,
        desired_key_bytes=KEY_BYTES,
        rounds=KDF_ROUNDS,
    )


def hash_password(plain_password: str) -> str:
    if not isinstance(plain_password, str) or len(plain_password) == 0:
        raise ValueError("Password must be a non-empty string")

    salt = secrets.token_bytes(SALT_BYTES)
    key = _derive(plain_password, salt)
    return f"{key.hex()}.{salt.hex()}"


def is_well_formed(password_hash: str) -> bool:
    if not password_hash or password_hash.count(".") != 1:
        return False
    key_hex, salt_hex = password_hash.split(".")
    try:
        return len(bytes.fromhex(key_hex)) == KEY_BYTES and len(bytes.fromhex(salt_hex)) > 0
    except ValueError:
        return False


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not plain_password or not is_well_formed(password_hash):
        return False
    key_hex, salt_hex = password_hash.split(".")
    candidate = _derive(plain_password, bytes.fromhex(salt_hex))
    return hmac.compare_digest(candidate, bytes.fromhex(key_hex))
