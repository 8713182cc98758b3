"""Authorization ヘッダーからの Bearer トークン認証"""

from __future__ import annotations

import contextvars
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from .exceptions import AuthError, AuthErrorCodes, HeaderFormatError
from .models import ParsedToken

AUTHORIZATION_HEADER = "Authorization"


class TokenVerifierProtocol(Protocol):
    """verify(token) -> ParsedToken を持つ検証器のプロトコル。"""

    def verify(self, token: str) -> ParsedToken: ...


@dataclass(frozen=True)
class AuthenticatedIdentity:
    """検証済みトークンとユーザー名。"""

    token: ParsedToken
    username: str | None


_identity_var: contextvars.ContextVar[AuthenticatedIdentity | None] = contextvars.ContextVar(
    "k1s0_cognito_identity", default=None
)


def set_identity(identity: AuthenticatedIdentity) -> contextvars.Token[AuthenticatedIdentity | None]:
    """現在のリクエストコンテキストに認証済み ID をセットする。"""
    return _identity_var.set(identity)


def get_identity() -> AuthenticatedIdentity | None:
    """現在のリクエストコンテキストから認証済み ID を取得する。"""
    return _identity_var.get()


def reset_identity(token: contextvars.Token[Any]) -> None:
    """set_identity で取得したトークンでリセットする。"""
    _identity_var.reset(token)


def token_from_auth_header(value: str | None) -> str:
    """Authorization ヘッダー値から Bearer トークンを取り出す。

    Raises:
        HeaderFormatError: ヘッダーが空（NO_TOKEN）、または "Bearer <token>" 形式でない場合
    """
    if not value:
        raise HeaderFormatError(AuthErrorCodes.NO_TOKEN, "no token")
    parts = value.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HeaderFormatError(
            AuthErrorCodes.INVALID_HEADER_FORMAT, "invalid Authorization header format"
        )
    return parts[1]


def _get_header(headers: Mapping[str, str], name: str) -> str | None:
    value = headers.get(name)
    if value is not None:
        return value
    lowered = name.lower()
    for key, candidate in headers.items():
        if key.lower() == lowered:
            return candidate
    return None


class BearerAuthenticator:
    """リクエストヘッダーを検証して認証済み ID を返す。"""

    def __init__(self, verifier: TokenVerifierProtocol) -> None:
        self._verifier = verifier

    def authenticate(self, headers: Mapping[str, str]) -> AuthenticatedIdentity:
        """ヘッダーからトークンを取り出して検証する。

        Raises:
            HeaderFormatError: Authorization ヘッダーが欠落・不正な場合
            AuthError: トークン検証に失敗した場合
        """
        token = token_from_auth_header(_get_header(headers, AUTHORIZATION_HEADER))
        parsed = self._verifier.verify(token)
        return AuthenticatedIdentity(token=parsed, username=parsed.claims.username)


def forbidden_response(error: AuthError) -> tuple[int, dict[str, str]]:
    """認証エラーを 403 レスポンス（ステータス, JSON ボディ）に変換する。"""
    if isinstance(error, HeaderFormatError):
        return 403, {"message": "invalid Authorization header"}
    return 403, {"message": "invalid token"}
