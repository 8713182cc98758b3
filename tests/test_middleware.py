"""Bearer トークン認証のユニットテスト"""

from __future__ import annotations

import contextvars

import pytest
from k1s0_cognito.exceptions import (
    AuthErrorCodes,
    ClaimError,
    HeaderFormatError,
    SignatureInvalidError,
)
from k1s0_cognito.middleware import (
    AuthenticatedIdentity,
    BearerAuthenticator,
    forbidden_response,
    get_identity,
    reset_identity,
    set_identity,
    token_from_auth_header,
)
from k1s0_cognito.verifier import TokenVerifier


@pytest.mark.parametrize(
    "value, expected",
    [
        ("Bearer abc", "abc"),
        ("bearer abc", "abc"),
        ("BEARER abc", "abc"),
        ("  Bearer\tabc  ", "abc"),
    ],
)
def test_token_from_auth_header_valid(value: str, expected: str) -> None:
    """Bearer <token> 形式からトークンを取り出せること。"""
    assert token_from_auth_header(value) == expected


@pytest.mark.parametrize("value", ["Bearer", "Basic abc", "Bearer a b", "abc", "   ", "Bearerabc"])
def test_token_from_auth_header_invalid_format(value: str) -> None:
    """形式不正は INVALID_HEADER_FORMAT になること。"""
    with pytest.raises(HeaderFormatError) as exc_info:
        token_from_auth_header(value)
    assert exc_info.value.code == AuthErrorCodes.INVALID_HEADER_FORMAT
    assert exc_info.value.no_token is False


@pytest.mark.parametrize("value", ["", None])
def test_token_from_auth_header_no_token(value: str | None) -> None:
    """ヘッダーが空・欠落の場合は NO_TOKEN になり、形式不正と区別できること。"""
    with pytest.raises(HeaderFormatError) as exc_info:
        token_from_auth_header(value)
    assert exc_info.value.code == AuthErrorCodes.NO_TOKEN
    assert exc_info.value.no_token is True


@pytest.fixture
def authenticator(key_set, verifier_config) -> BearerAuthenticator:
    return BearerAuthenticator(TokenVerifier(key_set, verifier_config))


def test_authenticate_returns_identity(authenticator, make_token) -> None:
    """有効なトークンからユーザー名付きの ID を返すこと。"""
    identity = authenticator.authenticate({"Authorization": f"Bearer {make_token()}"})
    assert identity.token.valid is True
    assert identity.username == "anaya"


def test_authenticate_header_lookup_is_case_insensitive(authenticator, make_token) -> None:
    """ヘッダー名の大文字小文字を区別しないこと。"""
    identity = authenticator.authenticate({"authorization": f"bearer {make_token(username='u1')}"})
    assert identity.username == "u1"


def test_authenticate_missing_header(authenticator) -> None:
    """Authorization ヘッダーが無い場合は NO_TOKEN になること。"""
    with pytest.raises(HeaderFormatError) as exc_info:
        authenticator.authenticate({"Content-Type": "application/json"})
    assert exc_info.value.no_token is True


def test_authenticate_propagates_verification_error(authenticator, make_token, other_private_key) -> None:
    """検証エラーはそのまま送出されること。"""
    with pytest.raises(SignatureInvalidError):
        authenticator.authenticate({"Authorization": f"Bearer {make_token(key=other_private_key)}"})
    with pytest.raises(ClaimError):
        authenticator.authenticate({"Authorization": f"Bearer {make_token(aud='other')}"})


def test_forbidden_response_for_header_error() -> None:
    """ヘッダーエラーは 403 invalid Authorization header になること。"""
    error = HeaderFormatError(AuthErrorCodes.NO_TOKEN, "no token")
    assert forbidden_response(error) == (403, {"message": "invalid Authorization header"})


def test_forbidden_response_for_token_error() -> None:
    """トークン検証エラーは 403 invalid token になること。"""
    assert forbidden_response(SignatureInvalidError()) == (403, {"message": "invalid token"})


def test_identity_context(authenticator, make_token) -> None:
    """リクエストコンテキストに ID をセット・取得・リセットできること。"""
    identity = authenticator.authenticate({"Authorization": f"Bearer {make_token()}"})
    token = set_identity(identity)
    try:
        assert get_identity() is identity
    finally:
        reset_identity(token)
    assert get_identity() is None


def test_identity_context_is_isolated(authenticator, make_token) -> None:
    """別のコンテキストには ID が漏れないこと。"""
    identity = authenticator.authenticate({"Authorization": f"Bearer {make_token()}"})

    def run() -> AuthenticatedIdentity | None:
        set_identity(identity)
        return get_identity()

    assert contextvars.copy_context().run(run) is identity
    assert get_identity() is None
