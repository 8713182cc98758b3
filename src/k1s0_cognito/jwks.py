"""JWKS フェッチャーと鍵セットの解決"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx
import structlog

from .exceptions import FetchError, KeyMaterialError
from .keys import build_key_material
from .metrics import jwks_resolutions_total
from .models import JsonWebKey, KeySet, PublicKeyMaterial

JWKS_FETCH_TIMEOUT_SECONDS = 10.0

logger = structlog.stdlib.get_logger(__name__)


def _extract_keys(jwks_uri: str, resp: httpx.Response) -> list[Any]:
    """レスポンスボディから keys 配列を取り出す。"""
    try:
        data: Any = resp.json()
    except (ValueError, RecursionError) as e:
        raise FetchError(f"JWKS from {jwks_uri} is not valid JSON: {e}", cause=e) from e
    if not isinstance(data, dict) or not isinstance(data.get("keys"), list):
        raise FetchError(f"JWKS from {jwks_uri} must be an object with a keys array")
    keys: list[Any] = data["keys"]
    return keys


class JwksFetcher(ABC):
    """JWKS フェッチャー抽象基底クラス。"""

    @abstractmethod
    def fetch_keys(self) -> list[Any]:
        """JWKS キーリストを取得する。"""
        ...

    @abstractmethod
    async def fetch_keys_async(self) -> list[Any]:
        """非同期で JWKS キーリストを取得する。"""
        ...


class HttpJwksFetcher(JwksFetcher):
    """HTTP で JWKS を取得するフェッチャー。呼び出しごとに 1 回だけリクエストする。"""

    def __init__(self, jwks_uri: str, timeout: float = JWKS_FETCH_TIMEOUT_SECONDS) -> None:
        self._jwks_uri = jwks_uri
        self._timeout = timeout

    @property
    def jwks_uri(self) -> str:
        return self._jwks_uri

    def fetch_keys(self) -> list[Any]:
        """同期で JWKS キーを取得する。"""
        try:
            resp = httpx.get(self._jwks_uri, timeout=self._timeout)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch JWKS from {self._jwks_uri}: {e}", cause=e) from e
        return _extract_keys(self._jwks_uri, resp)

    async def fetch_keys_async(self) -> list[Any]:
        """非同期で JWKS キーを取得する。"""
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.get(self._jwks_uri, timeout=self._timeout)
                resp.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch JWKS from {self._jwks_uri}: {e}", cause=e) from e
        return _extract_keys(self._jwks_uri, resp)


def build_key_set(entries: list[Any]) -> KeySet:
    """keys 配列から KeySet を構築する。

    1 件でも不正な鍵があれば全体を失敗させる（部分的な KeySet は返さない）。

    Raises:
        FetchError: 要素の形式が JWK として解釈できない場合
        KeyMaterialError: 鍵素材が不正な場合
    """
    keys: dict[str, PublicKeyMaterial] = {}
    for entry in entries:
        try:
            jwk = JsonWebKey.from_dict(entry)
        except ValueError as e:
            raise FetchError(f"Malformed JWKS entry: {e}", cause=e) from e
        if jwk.kid in keys:
            logger.warning("jwks_duplicate_kid", kid=jwk.kid)
        keys[jwk.kid] = build_key_material(jwk)
    return KeySet(keys)


class KeySetResolver:
    """JWKS を 1 回取得して KeySet を構築する。"""

    def __init__(self, fetcher: JwksFetcher) -> None:
        self._fetcher = fetcher

    def resolve(self) -> KeySet:
        """同期で KeySet を解決する。"""
        try:
            key_set = build_key_set(self._fetcher.fetch_keys())
        except (FetchError, KeyMaterialError) as e:
            self._record_failure(e)
            raise
        self._record_success(key_set)
        return key_set

    async def resolve_async(self) -> KeySet:
        """非同期で KeySet を解決する。"""
        try:
            key_set = build_key_set(await self._fetcher.fetch_keys_async())
        except (FetchError, KeyMaterialError) as e:
            self._record_failure(e)
            raise
        self._record_success(key_set)
        return key_set

    @staticmethod
    def _record_success(key_set: KeySet) -> None:
        jwks_resolutions_total.add(1, {"result": "success"})
        logger.info("jwks_resolved", key_count=len(key_set), kids=sorted(key_set))

    @staticmethod
    def _record_failure(error: FetchError | KeyMaterialError) -> None:
        jwks_resolutions_total.add(1, {"result": error.code})
        logger.error("jwks_resolution_failed", code=error.code, error=str(error))
