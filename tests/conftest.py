"""Pytest configuration shared by the memodeck tests."""

import os

import pytest

# 開発者の `.env` やシェルの MEMODECK_* がテスト結果に影響しないよう、
# ログレベルだけは既定で抑えておく。個別テストは monkeypatch で上書きする。
os.environ.setdefault("MEMODECK_LOG_LEVEL", "WARNING")

from memodeck import Deck, Scheduler, SchedulingPolicy  # noqa: E402


@pytest.fixture
def deck() -> Deck:
    return Deck()


@pytest.fixture
def scheduler() -> Scheduler:
    # 環境変数に依存しない既定値のポリシーで固定する
    return Scheduler(SchedulingPolicy())
