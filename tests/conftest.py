"""テスト共通フィクスチャ（実 RSA 鍵ペアとトークン生成）"""

from __future__ import annotations

import base64
import json
import time
from collections.abc import Callable
from typing import Any

import pytest
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from k1s0_cognito.jwks import build_key_set
from k1s0_cognito.models import KeySet, VerifierConfig

AUDIENCE = "app1"
ISSUER = "https://issuer/pool"


def b64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def jwk_for(private_key: rsa.RSAPrivateKey, kid: str = "k1", e: str = "AQAB") -> dict[str, str]:
    """RSA 秘密鍵から JWKS 形式の公開鍵辞書を生成する。"""
    n = private_key.public_key().public_numbers().n
    return {
        "alg": "RS256",
        "e": e,
        "kid": kid,
        "kty": "RSA",
        "n": b64url(n.to_bytes((n.bit_length() + 7) // 8, "big")),
        "use": "sig",
    }


def sign_token(
    private_key: rsa.RSAPrivateKey,
    header: dict[str, Any],
    claims: dict[str, Any],
) -> str:
    """ヘッダーとクレームを RS256 で署名したコンパクトトークンを返す。"""
    signing_input = (
        f"{b64url(json.dumps(header).encode())}.{b64url(json.dumps(claims).encode())}"
    )
    signature = private_key.sign(signing_input.encode("ascii"), padding.PKCS1v15(), hashes.SHA256())
    return f"{signing_input}.{b64url(signature)}"


@pytest.fixture(scope="session")
def private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_private_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def jwk(private_key: rsa.RSAPrivateKey) -> dict[str, str]:
    return jwk_for(private_key, kid="k1")


@pytest.fixture
def key_set(jwk: dict[str, str]) -> KeySet:
    return build_key_set([jwk])


@pytest.fixture
def verifier_config() -> VerifierConfig:
    return VerifierConfig(audience=AUDIENCE, issuer=ISSUER)


@pytest.fixture
def make_token(private_key: rsa.RSAPrivateKey) -> Callable[..., str]:
    """既定値（kid=k1, aud=app1, 1 時間後に失効）を上書きしてトークンを作るファクトリ。"""

    def _make(
        header: dict[str, Any] | None = None,
        key: rsa.RSAPrivateKey | None = None,
        drop: tuple[str, ...] = (),
        **claims: Any,
    ) -> str:
        payload: dict[str, Any] = {
            "sub": "aaaaaaaa-bbbb-cccc-dddd-example",
            "aud": AUDIENCE,
            "iss": ISSUER,
            "exp": int(time.time()) + 3600,
            "token_use": "id",
            "cognito:username": "anaya",
        }
        payload.update(claims)
        for name in drop:
            payload.pop(name, None)
        return sign_token(key or private_key, header or {"alg": "RS256", "kid": "k1"}, payload)

    return _make
