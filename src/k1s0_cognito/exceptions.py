"""cognito ライブラリの例外型定義"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import ParsedToken


class AuthError(Exception):
    """cognito ライブラリのエラー基底クラス。"""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class AuthErrorCodes:
    """AuthError のエラーコード定数。"""

    CONFIG_ERROR: str = "CONFIG_ERROR"
    READ_FILE: str = "READ_FILE_ERROR"
    PARSE_YAML: str = "PARSE_YAML_ERROR"
    VALIDATION: str = "VALIDATION_ERROR"
    JWKS_FETCH_ERROR: str = "JWKS_FETCH_ERROR"
    UNSUPPORTED_KEY_TYPE: str = "UNSUPPORTED_KEY_TYPE"
    BAD_MODULUS_ENCODING: str = "BAD_MODULUS_ENCODING"
    BAD_EXPONENT: str = "BAD_EXPONENT"
    MALFORMED_TOKEN: str = "MALFORMED_TOKEN"
    INVALID_SIGNING_METHOD: str = "INVALID_SIGNING_METHOD"
    UNKNOWN_KEY: str = "UNKNOWN_KEY"
    INVALID_SIGNATURE: str = "INVALID_SIGNATURE"
    INVALID_AUDIENCE: str = "INVALID_AUDIENCE"
    TOKEN_EXPIRED: str = "TOKEN_EXPIRED"
    INVALID_ISSUER: str = "INVALID_ISSUER"
    NO_TOKEN: str = "NO_TOKEN"
    INVALID_HEADER_FORMAT: str = "INVALID_HEADER_FORMAT"


class ConfigError(AuthError):
    """設定値の欠落・不正。ネットワーク I/O より前に発生する。"""

    def __init__(
        self,
        message: str,
        code: str = AuthErrorCodes.CONFIG_ERROR,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(code=code, message=message, cause=cause)


class FetchError(AuthError):
    """JWKS の取得・デコード失敗。"""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(code=AuthErrorCodes.JWKS_FETCH_ERROR, message=message, cause=cause)


class KeyMaterialError(AuthError):
    """JWK から公開鍵を構築できない。鍵セットの解決全体を中断する。"""

    def __init__(self, code: str, message: str, kid: str = "") -> None:
        super().__init__(code=code, message=message)
        self.kid = kid


class StructuralError(AuthError):
    """トークンが 3 セグメントのコンパクト形式になっていない。"""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        super().__init__(code=AuthErrorCodes.MALFORMED_TOKEN, message=message, cause=cause)


class SignatureMethodError(AuthError):
    """ヘッダーの署名アルゴリズムが許可されていない。"""

    def __init__(self, alg: object) -> None:
        super().__init__(
            code=AuthErrorCodes.INVALID_SIGNING_METHOD,
            message=f"invalid signing method {alg!r}. signing method must be RS256",
        )
        self.alg = alg


class UnknownKeyError(AuthError):
    """ヘッダーの kid が鍵セットに存在しない。"""

    def __init__(self, kid: object) -> None:
        super().__init__(code=AuthErrorCodes.UNKNOWN_KEY, message=f"invalid kid {kid!r}")
        self.kid = kid


class SignatureInvalidError(AuthError):
    """署名検証に失敗した。"""

    def __init__(self, message: str = "signature is invalid", cause: Exception | None = None) -> None:
        super().__init__(code=AuthErrorCodes.INVALID_SIGNATURE, message=message, cause=cause)


class Claim(StrEnum):
    """検証対象のクレーム。"""

    AUDIENCE = "aud"
    EXPIRY = "exp"
    ISSUER = "iss"


_CLAIM_CODES: dict[Claim, str] = {
    Claim.AUDIENCE: AuthErrorCodes.INVALID_AUDIENCE,
    Claim.EXPIRY: AuthErrorCodes.TOKEN_EXPIRED,
    Claim.ISSUER: AuthErrorCodes.INVALID_ISSUER,
}


class ClaimError(AuthError):
    """署名検証後のクレームチェック失敗。

    署名は検証済みなので、監査ログ用にパース済みトークンを保持する。
    """

    def __init__(self, claim: Claim, message: str, token: ParsedToken) -> None:
        super().__init__(code=_CLAIM_CODES[claim], message=message)
        self.claim = claim
        self.token = token


class HeaderFormatError(AuthError):
    """Authorization ヘッダーの欠落・形式不正。"""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(code=code, message=message)

    @property
    def no_token(self) -> bool:
        """ヘッダー自体が存在しない（空）場合に True。"""
        return self.code == AuthErrorCodes.NO_TOKEN
