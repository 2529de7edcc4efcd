import logging

from app.core.security import hash_password, password_too_long, verify_password


def test_hash_is_not_plaintext_and_verifies():
    digest = hash_password("secret123", rounds=4)

    assert digest != "secret123"
    assert digest.startswith("$2")
    assert verify_password("secret123", digest)


def test_wrong_password_does_not_verify():
    digest = hash_password("secret123", rounds=4)
    assert not verify_password("secret124", digest)


def test_same_password_hashes_differently():
    assert hash_password("secret123", rounds=4) != hash_password("secret123", rounds=4)


def test_malformed_digest_returns_false():
    assert verify_password("secret123", "plain-text-not-a-hash") is False


def test_empty_input_returns_false():
    assert verify_password("", hash_password("secret123", rounds=4)) is False
    assert verify_password("secret123", "") is False


def test_overlong_password_does_not_verify_or_warn(caplog):
    digest = hash_password("secret123", rounds=4)

    with caplog.at_level(logging.WARNING):
        assert verify_password("密" * 30, digest) is False

    assert "malformed" not in caplog.text


def test_password_byte_length_check():
    assert not password_too_long("a" * 72)
    assert password_too_long("a" * 73)
    assert password_too_long("密" * 25)
