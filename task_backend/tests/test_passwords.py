from src.api.passwords import BCRYPT_ROUNDS, hash_password, verify_password


def test_hash_is_salted_and_verifiable():
    first = hash_password("secret1")
    second = hash_password("secret1")
    assert first != second
    assert first != "secret1"
    assert verify_password("secret1", first)
    assert verify_password("secret1", second)


def test_cost_factor_is_embedded():
    assert hash_password("secret1").startswith(f"$2b${BCRYPT_ROUNDS:02d}$")


def test_wrong_password_does_not_verify():
    assert not verify_password("secret2", hash_password("secret1"))


def test_malformed_hash_never_verifies():
    assert not verify_password("secret1", "not-a-bcrypt-hash")
    assert not verify_password("secret1", "")
