"""Cognito 設定の型定義と読み込み"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import AuthErrorCodes, ConfigError
from .models import VerifierConfig

COGNITO_ISSUER_TEMPLATE = "https://cognito-idp.{region}.amazonaws.com/{user_pool_id}"


class LogSection(BaseModel):
    """ログ設定。"""

    level: str = "INFO"
    format: Literal["json", "text"] = "json"


class CognitoSettings(BaseModel):
    """Cognito ユーザープールの接続設定。"""

    region: str = ""
    user_pool_id: str = ""
    client_id: str = ""
    log: LogSection = Field(default_factory=LogSection)

    @property
    def issuer(self) -> str:
        return COGNITO_ISSUER_TEMPLATE.format(region=self.region, user_pool_id=self.user_pool_id)

    @property
    def jwks_uri(self) -> str:
        return f"{self.issuer}/.well-known/jwks.json"

    def require(self) -> None:
        """必須項目が揃っているか確認する。

        Raises:
            ConfigError: region / user_pool_id / client_id のいずれかが空の場合
        """
        missing = [
            name
            for name in ("region", "user_pool_id", "client_id")
            if not getattr(self, name).strip()
        ]
        if missing:
            raise ConfigError(f"invalid cognito settings, missing: {', '.join(missing)}")

    def to_verifier_config(self) -> VerifierConfig:
        """検証設定に変換する（必須項目チェック付き）。"""
        self.require()
        return VerifierConfig(audience=self.client_id, issuer=self.issuer)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """base と override をディープマージして新しい辞書を返す。override の値が優先される。"""
    result: dict[str, Any] = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(
            code=AuthErrorCodes.READ_FILE,
            message=f"Failed to read config file: {path}",
            cause=e,
        ) from e
    try:
        data: Any = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigError(
            code=AuthErrorCodes.PARSE_YAML,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    if not isinstance(data, dict):
        raise ConfigError(
            code=AuthErrorCodes.PARSE_YAML,
            message=f"Config root must be a mapping: {path}",
        )
    return data


def load_settings(base_path: Path, env_path: Path | None = None) -> CognitoSettings:
    """設定ファイルを読み込んで CognitoSettings を返す。

    トップレベルの cognito セクションがあればそれを、なければファイル全体を設定とみなす。

    base_path: ベース設定ファイルパス（必須）
    env_path: 環境別設定ファイルパス（オプション）。存在する場合はベースにマージ。
    """
    data = _read_yaml(base_path)
    if env_path is not None and env_path.exists():
        data = deep_merge(data, _read_yaml(env_path))
    section = data.get("cognito", data)
    try:
        return CognitoSettings.model_validate(section)
    except ValidationError as e:
        raise ConfigError(
            code=AuthErrorCodes.VALIDATION,
            message=f"Config validation failed: {e}",
            cause=e,
        ) from e
