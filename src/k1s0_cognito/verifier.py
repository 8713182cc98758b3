"""JWT 検証パイプライン

検証は次の順序で行い、最初の失敗で打ち切る。

    構造 → アルゴリズム → 鍵 (kid) → 署名 → aud → exp → iss

署名検証が通るまではペイロードを信頼しないため、クレームは一切参照しない。
クレームチェックの失敗時のみ、パース済みトークンを ClaimError に添えて返す。
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from typing import Any

from jwt.algorithms import Algorithm, RSAAlgorithm

from .exceptions import (
    Claim,
    ClaimError,
    SignatureInvalidError,
    SignatureMethodError,
    StructuralError,
    UnknownKeyError,
)
from .keys import b64url_decode
from .models import (
    Claims,
    KeySet,
    ParsedToken,
    PublicKeyMaterial,
    RsaPublicKeyMaterial,
    VerifierConfig,
)

ALLOWED_ALGORITHM = "RS256"

# alg → (鍵素材の型, 署名アルゴリズム)
_ALGORITHMS: dict[str, tuple[type[RsaPublicKeyMaterial], Algorithm]] = {
    ALLOWED_ALGORITHM: (RsaPublicKeyMaterial, RSAAlgorithm(RSAAlgorithm.SHA256)),
}


def _decode_json_segment(segment: str, name: str) -> dict[str, Any]:
    try:
        data = json.loads(b64url_decode(segment))
    except (ValueError, RecursionError) as e:
        raise StructuralError(f"token {name} is not base64url encoded JSON", cause=e) from e
    if not isinstance(data, dict):
        raise StructuralError(f"token {name} must be a JSON object")
    return data


class TokenVerifier:
    """KeySet と VerifierConfig を使ってトークンを検証する。

    KeySet は読み取り専用なので、同一インスタンスを複数スレッドから呼び出してよい。
    """

    def __init__(
        self,
        key_set: KeySet,
        config: VerifierConfig,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._key_set = key_set
        self._config = config
        self._clock = clock

    def verify(self, token: str) -> ParsedToken:
        """トークンを検証し、有効な ParsedToken を返す。

        Raises:
            StructuralError: 3 セグメント形式でない、またはヘッダー/ペイロードが不正な場合
            SignatureMethodError: alg が RS256 でない場合
            UnknownKeyError: kid が鍵セットに存在しない場合
            SignatureInvalidError: 署名検証に失敗した場合
            ClaimError: aud / exp / iss のいずれかが不正な場合（token 属性を持つ）
        """
        if not token.isascii():
            raise StructuralError("token contains non-ascii characters")
        segments = token.split(".")
        if len(segments) != 3:
            raise StructuralError(f"token must have 3 segments, got {len(segments)}")
        header_segment, payload_segment, signature_segment = segments
        header = _decode_json_segment(header_segment, "header")

        alg = header.get("alg")
        if alg != ALLOWED_ALGORITHM:
            raise SignatureMethodError(alg)
        material_type, algorithm = _ALGORITHMS[alg]

        key = self._resolve_key(header.get("kid"))
        if not isinstance(key, material_type):
            raise SignatureMethodError(alg)

        signature = self._verify_signature(
            algorithm,
            key,
            f"{header_segment}.{payload_segment}".encode("ascii"),
            signature_segment,
        )

        parsed = ParsedToken(
            raw=token,
            header=header,
            claims=Claims(_decode_json_segment(payload_segment, "payload")),
            signature=signature,
        )
        self._verify_claims(parsed)
        parsed.valid = True
        return parsed

    def _resolve_key(self, kid: Any) -> PublicKeyMaterial:
        if not isinstance(kid, str) or kid not in self._key_set:
            raise UnknownKeyError(kid)
        return self._key_set[kid]

    @staticmethod
    def _verify_signature(
        algorithm: Algorithm,
        key: RsaPublicKeyMaterial,
        signing_input: bytes,
        signature_segment: str,
    ) -> bytes:
        try:
            signature = b64url_decode(signature_segment)
        except ValueError as e:
            raise SignatureInvalidError("signature is not base64url encoded", cause=e) from e
        if not algorithm.verify(signing_input, key.public_key, signature):
            raise SignatureInvalidError()
        return signature

    def _verify_claims(self, parsed: ParsedToken) -> None:
        claims = parsed.claims

        if claims.audience != self._config.audience:
            raise ClaimError(Claim.AUDIENCE, "audience is invalid", parsed)

        try:
            expires_at = claims.expires_at()
        except ValueError as e:
            raise ClaimError(Claim.EXPIRY, f"token expired: {e}", parsed) from e
        if not expires_at > self._clock():
            raise ClaimError(Claim.EXPIRY, "token expired", parsed)

        if claims.issuer != self._config.issuer:
            raise ClaimError(Claim.ISSUER, "iss is invalid", parsed)
