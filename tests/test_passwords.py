"""
tests/test_passwords.py -- bcrypt hashing and verification.

Cost factor 4 keeps the suite fast; the production default (11) is checked
by reading it back out of the digest.
"""

from __future__ import annotations

from auth.passwords import DEFAULT_ROUNDS, DUMMY_HASH, hash_password, verify_password


def test_hash_verifies_against_original_password():
    hashed = hash_password("s3cret!", rounds=4)
    assert hashed != "s3cret!"
    assert verify_password("s3cret!", hashed)


def test_wrong_password_does_not_verify():
    hashed = hash_password("s3cret!", rounds=4)
    assert not verify_password("s3cret?", hashed)


def test_same_password_hashes_differently_each_time():
    assert hash_password("repeat", rounds=4) != hash_password("repeat", rounds=4)


def test_default_work_factor_is_embedded_in_digest():
    # $2b$11$... -- the cost sits between the second and third '$'.
    assert DEFAULT_ROUNDS == 11
    assert DUMMY_HASH.split("$")[2] == "11"


def test_empty_or_malformed_digest_is_rejected_without_raising():
    assert verify_password("anything", "") is False
    assert verify_password("anything", "not-a-bcrypt-hash") is False
