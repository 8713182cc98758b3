"""JWK から RSA 公開鍵を構築する"""

from __future__ import annotations

import base64
import binascii

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicNumbers

from .exceptions import AuthErrorCodes, KeyMaterialError
from .models import JsonWebKey, RsaPublicKeyMaterial

RSA_KEY_TYPE = "RSA"
RSA_PUBLIC_EXPONENT = 65537

# 65537 の 3 バイト表現と 4 バイト（先頭ゼロ埋め）表現のみ受け付ける
CANONICAL_EXPONENTS = frozenset({"AQAB", "AAEAAQ"})


def b64url_decode(value: str) -> bytes:
    """パディングなし base64url をデコードする。

    Raises:
        ValueError: 不正な文字・パディング・長さの場合
    """
    if "=" in value:
        raise ValueError("base64url value must not be padded")
    if "+" in value or "/" in value:
        raise ValueError("value uses the standard base64 alphabet")
    try:
        data = value.encode("ascii")
    except UnicodeEncodeError as e:
        raise ValueError("base64url value contains non-ascii characters") from e
    try:
        return base64.b64decode(data + b"=" * (-len(data) % 4), altchars=b"-_", validate=True)
    except binascii.Error as e:
        raise ValueError(f"invalid base64url value: {e}") from e


def build_key_material(jwk: JsonWebKey) -> RsaPublicKeyMaterial:
    """JWK 1 件を検証可能な RSA 公開鍵に変換する。

    Args:
        jwk: JWKS の keys 要素

    Returns:
        kid と RSA 公開鍵を保持する RsaPublicKeyMaterial

    Raises:
        KeyMaterialError: 鍵種別・モジュラス・指数のいずれかが不正な場合
    """
    if jwk.kty != RSA_KEY_TYPE:
        raise KeyMaterialError(
            code=AuthErrorCodes.UNSUPPORTED_KEY_TYPE,
            message=f"KTY {jwk.kty!r} must be RSA",
            kid=jwk.kid,
        )

    try:
        modulus_bytes = b64url_decode(jwk.n)
    except ValueError as e:
        raise KeyMaterialError(
            code=AuthErrorCodes.BAD_MODULUS_ENCODING,
            message=f"N of key {jwk.kid!r} is not valid base64url: {e}",
            kid=jwk.kid,
        ) from e
    if not modulus_bytes:
        raise KeyMaterialError(
            code=AuthErrorCodes.BAD_MODULUS_ENCODING,
            message=f"N of key {jwk.kid!r} is empty",
            kid=jwk.kid,
        )

    if jwk.e not in CANONICAL_EXPONENTS:
        raise KeyMaterialError(
            code=AuthErrorCodes.BAD_EXPONENT,
            message=f"E {jwk.e!r} is invalid",
            kid=jwk.kid,
        )

    n = int.from_bytes(modulus_bytes, "big")
    try:
        public_key = RSAPublicNumbers(RSA_PUBLIC_EXPONENT, n).public_key()
    except ValueError as e:
        raise KeyMaterialError(
            code=AuthErrorCodes.BAD_MODULUS_ENCODING,
            message=f"N of key {jwk.kid!r} is not a usable RSA modulus: {e}",
            kid=jwk.kid,
        ) from e

    return RsaPublicKeyMaterial(kid=jwk.kid, n=n, e=RSA_PUBLIC_EXPONENT, public_key=public_key)
