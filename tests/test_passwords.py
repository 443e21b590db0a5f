import pytest

from freelancehub.auth.passwords import hash_password, verify_password
from freelancehub.core.errors import StoreError, VerifierError


def test_hash_and_verify():
    h = hash_password("secret1")
    assert h.startswith("$argon2")
    assert h != hash_password("secret1")  # salted
    assert verify_password(h, "secret1") is True
    assert verify_password(h, "secret2") is False


def test_empty_password_is_rejected():
    with pytest.raises(ValueError):
        hash_password("")
    assert verify_password(hash_password("secret1"), "") is False


@pytest.mark.parametrize(
    "digest",
    [
        "not-a-hash",
        "$argon2id$v=19$m=65536",
        "",
    ],
)
def test_malformed_digest_raises_verifier_error(digest):
    with pytest.raises(VerifierError) as ei:
        verify_password(digest, "secret1")
    assert isinstance(ei.value, StoreError)


def test_altered_hash_bytes_read_as_mismatch():
    h = hash_password("secret1")
    head, digest = h.rsplit("$", 1)
    altered = head + "$" + ("A" if digest[0] != "A" else "B") + digest[1:]
    assert verify_password(altered, "secret1") is False
