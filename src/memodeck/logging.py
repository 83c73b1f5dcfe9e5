"""Structured logging setup.

構造化ログの初期化を提供する。コア自体は成功した状態変化のみをイベントとして
記録し、エラーは呼び出し側へ例外として返す（ログには出さない）。
"""

import logging
import structlog
from structlog import contextvars as structlog_contextvars
from .config import settings


def configure_logging(level: str | None = None) -> None:
    """Configure structlog for the host application.

    標準 logging を設定済みのレベルで初期化し、structlog で ISO タイムスタンプと
    JSON 形式の出力を有効化する。CLI/アプリ側の起動処理から一度だけ呼び出す想定。
    """
    # stdlib 側の出力に余計なプレフィックス（"INFO:logger:" など）を付けない
    # ため、フォーマットはメッセージのみ(%(message)s)に固定する。
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(message)s",
        handlers=[logging.StreamHandler()],
        force=True,
    )
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog_contextvars.merge_contextvars,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


# ホスト側が configure_logging() を呼ぶまでは stdlib の既定（WARNING 未満は破棄）に従う。
logger = structlog.wrap_logger(logging.getLogger("memodeck"))
