"""Cognito トークン検証クライアント"""

from __future__ import annotations

import time
from collections.abc import Callable

import structlog

from .config import CognitoSettings
from .exceptions import AuthError
from .jwks import HttpJwksFetcher, JwksFetcher, KeySetResolver
from .metrics import token_verifications_total
from .models import KeySet, ParsedToken, VerifierConfig
from .verifier import TokenVerifier

logger = structlog.stdlib.get_logger(__name__)


class CognitoVerifier:
    """解決済みの鍵セットと検証設定を束ねた検証クライアント。

    鍵セットは生成時に 1 回だけ解決し、以後は変更しない。
    """

    def __init__(
        self,
        config: VerifierConfig,
        key_set: KeySet,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._key_set = key_set
        self._verifier = TokenVerifier(key_set, config, clock=clock)

    @property
    def config(self) -> VerifierConfig:
        return self._config

    @property
    def key_set(self) -> KeySet:
        return self._key_set

    @classmethod
    def from_settings(
        cls,
        settings: CognitoSettings,
        fetcher: JwksFetcher | None = None,
    ) -> CognitoVerifier:
        """設定を検証し、JWKS を取得して CognitoVerifier を生成する。

        Raises:
            ConfigError: 必須設定が欠けている場合（JWKS 取得前）
            FetchError: JWKS の取得に失敗した場合
            KeyMaterialError: JWKS に不正な鍵が含まれる場合
        """
        config = settings.to_verifier_config()
        resolver = KeySetResolver(fetcher or HttpJwksFetcher(config.jwks_uri))
        return cls(config, resolver.resolve())

    @classmethod
    async def from_settings_async(
        cls,
        settings: CognitoSettings,
        fetcher: JwksFetcher | None = None,
    ) -> CognitoVerifier:
        """from_settings の非同期版。"""
        config = settings.to_verifier_config()
        resolver = KeySetResolver(fetcher or HttpJwksFetcher(config.jwks_uri))
        return cls(config, await resolver.resolve_async())

    def verify(self, token: str) -> ParsedToken:
        """トークンを検証する。失敗時は AuthError のサブクラスを送出する。"""
        try:
            parsed = self._verifier.verify(token)
        except AuthError as e:
            token_verifications_total.add(1, {"result": e.code})
            logger.debug("token_rejected", code=e.code, reason=str(e))
            raise
        token_verifications_total.add(1, {"result": "valid"})
        return parsed


def new_cognito_verifier(
    region: str,
    user_pool_id: str,
    client_id: str,
    fetcher: JwksFetcher | None = None,
) -> CognitoVerifier:
    """リージョン・ユーザープール ID・クライアント ID から CognitoVerifier を生成する。"""
    settings = CognitoSettings(region=region, user_pool_id=user_pool_id, client_id=client_id)
    return CognitoVerifier.from_settings(settings, fetcher=fetcher)
