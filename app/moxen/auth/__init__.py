"""Registry account keys, username rules and account flows."""

from moxen.auth.account import recover_account, register_account
from moxen.auth.signing import MoxenKeyPair, generate_keyfile_pair, validate_username

__all__ = [
    "MoxenKeyPair",
    "generate_keyfile_pair",
    "recover_account",
    "register_account",
    "validate_username",
]
