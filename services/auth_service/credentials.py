"""
Credential verification.

Stored passwords come in three shapes: bcrypt hashes written by the provisioning
script, the legacy Base64 encoding written by signup, and plain text written by
the forgot-password flow and by hand-provisioned rows. Base64 is an encoding, not
a hash; it exists here only so older rows keep working.
"""

import base64

import bcrypt


BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")
BCRYPT_ROUNDS = 12


def encode_password(password: str) -> str:
    """Legacy reversible encoding used for signup rows"""
    return base64.b64encode(password.encode("utf-8")).decode("ascii")


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    # bcrypt only considers the first 72 bytes
    pw_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(pw_bytes, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def _verify_bcrypt(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:72], hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def verify_password(password: str, stored: str) -> bool:
    """
    Check a submitted password against the stored value

    Args:
        password: Password as typed by the user
        stored: Value of the ``password`` column

    Returns:
        True if the encoded form or the raw form matches
    """
    if not stored or password is None:
        return False

    if stored.startswith(BCRYPT_PREFIXES) and _verify_bcrypt(password, stored):
        return True

    if encode_password(password) == stored:
        return True

    return password == stored
