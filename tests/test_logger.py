"""ロガー設定のユニットテスト"""

from k1s0_cognito.logger import configure_logging


def test_configure_logging_json_format() -> None:
    """JSON フォーマットのロガーが作成できること。"""
    logger = configure_logging(level="INFO", format="json")
    assert logger is not None


def test_configure_logging_text_format() -> None:
    """テキストフォーマットのロガーが作成できること。"""
    logger = configure_logging(level="DEBUG", format="text")
    assert logger is not None


def test_configure_logging_returns_bound_logger() -> None:
    """bind できる structlog ロガーが返ること。"""
    bound = configure_logging().bind(kid="k1")
    assert bound is not None
