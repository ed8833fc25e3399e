import hashlib
import re

import pytest

from core.auth import _decode, sign_jwt
from core.logger import redact_code
from core.security import (
    hash_password,
    new_reset_token,
    placeholder_password,
    random_code_suffix,
    verify_password,
)


def test_password_hashing():
    hashed = hash_password("secret1")
    assert hashed != "secret1"
    assert verify_password("secret1", hashed)
    assert not verify_password("secret2", hashed)
    assert not verify_password("secret1", "not-a-bcrypt-hash")


def test_generated_secrets():
    assert re.fullmatch(r"[A-Z0-9]{6}", random_code_suffix(6))
    assert placeholder_password() != placeholder_password()
    token, digest = new_reset_token()
    assert digest == hashlib.sha256(token.encode()).hexdigest()


@pytest.mark.parametrize(
    "code,redacted",
    [("ACME-EMP-X1Y2", "ACME-EMP-****"), ("NOHYPHEN", "****"), ("", ""), (None, "")],
)
def test_redact_code(code, redacted):
    assert redact_code(code) == redacted


def test_jwt_round_trip():
    authed = _decode(sign_jwt("cred-1", "jane@acme.io", "acme"))
    assert (authed.user_id, authed.email, authed.tenant_slug) == ("cred-1", "jane@acme.io", "acme")

    unplaced = _decode(sign_jwt("cred-2", "new@acme.io", None))
    assert unplaced.tenant_slug is None
