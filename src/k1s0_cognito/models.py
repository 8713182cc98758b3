"""鍵セット・トークン関連データモデル"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any, ClassVar

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPublicKey

_JWK_FIELDS = ("alg", "e", "kid", "kty", "n", "use")


@dataclass(frozen=True)
class JsonWebKey:
    """JWKS に公開されている 1 件の鍵（生の属性値）。"""

    alg: str = ""
    e: str = ""
    kid: str = ""
    kty: str = ""
    n: str = ""
    use: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> JsonWebKey:
        """JWKS の keys 要素から JsonWebKey を生成する。

        Raises:
            ValueError: 要素がオブジェクトでない、または属性が文字列でない場合
        """
        if not isinstance(data, dict):
            raise ValueError(f"JWK entry must be an object, got {type(data).__name__}")
        values: dict[str, str] = {}
        for name in _JWK_FIELDS:
            value = data.get(name, "")
            if not isinstance(value, str):
                raise ValueError(f"JWK attribute {name!r} must be a string")
            values[name] = value
        return cls(**values)


class KeyFamily(StrEnum):
    """鍵のアルゴリズムファミリー。"""

    RSA = "RSA"


@dataclass(frozen=True)
class PublicKeyMaterial:
    """検証用公開鍵の基底型。"""

    family: ClassVar[KeyFamily]

    kid: str


@dataclass(frozen=True)
class RsaPublicKeyMaterial(PublicKeyMaterial):
    """RSA 公開鍵。"""

    family: ClassVar[KeyFamily] = KeyFamily.RSA

    n: int
    e: int
    public_key: RSAPublicKey = field(compare=False, repr=False)


class KeySet(Mapping[str, PublicKeyMaterial]):
    """kid → 公開鍵の読み取り専用マッピング。"""

    def __init__(self, keys: Mapping[str, PublicKeyMaterial] | None = None) -> None:
        self._keys: Mapping[str, PublicKeyMaterial] = MappingProxyType(dict(keys or {}))

    def __getitem__(self, kid: str) -> PublicKeyMaterial:
        return self._keys[kid]

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __repr__(self) -> str:
        return f"KeySet(kids={sorted(self._keys)!r})"


@dataclass(frozen=True)
class VerifierConfig:
    """検証設定。"""

    audience: str
    issuer: str

    @property
    def jwks_uri(self) -> str:
        return f"{self.issuer}/.well-known/jwks.json"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class Claims(Mapping[str, Any]):
    """クレームへの型付きアクセサ。

    任意のクレームは Mapping としてそのまま参照できる。
    """

    def __init__(self, data: Mapping[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})

    def __getitem__(self, name: str) -> Any:
        return self._data[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"Claims({self._data!r})"

    @property
    def audience(self) -> str | None:
        """aud が文字列の場合のみその値を返す。"""
        aud = self._data.get("aud")
        return aud if isinstance(aud, str) else None

    @property
    def issuer(self) -> str | None:
        iss = self._data.get("iss")
        return iss if isinstance(iss, str) else None

    def expires_at(self) -> int | float:
        """exp を数値のまま返す。float 範囲を超える整数も変換せずに比較できる。

        Raises:
            ValueError: exp が存在しない、または数値でない場合
        """
        if "exp" not in self._data:
            raise ValueError("expiry claim missing")
        exp = self._data["exp"]
        if not _is_number(exp):
            raise ValueError(f"expiry claim is not numeric: {exp!r}")
        return exp

    @property
    def username(self) -> str | None:
        """アクセストークンの username、ID トークンの cognito:username を返す。"""
        for name in ("username", "cognito:username"):
            value = self._data.get(name)
            if isinstance(value, str):
                return value
        return None

    def to_dict(self) -> dict[str, Any]:
        return dict(self._data)


@dataclass
class ParsedToken:
    """パース済みトークン。全チェック通過後にのみ valid が True になる。"""

    raw: str
    header: dict[str, Any]
    claims: Claims
    signature: bytes
    valid: bool = False

    @property
    def kid(self) -> str | None:
        kid = self.header.get("kid")
        return kid if isinstance(kid, str) else None

    @property
    def alg(self) -> str | None:
        alg = self.header.get("alg")
        return alg if isinstance(alg, str) else None
