import logging

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_LEARNING_THRESHOLD = 2
DEFAULT_LEARNING_INTERVAL = 1
DEFAULT_INITIAL_REVIEW_INTERVAL = 2
DEFAULT_INTERVAL_GROWTH_FACTOR = 2.0
DEFAULT_MAX_INTERVAL = 90
DEFAULT_MASTERY_THRESHOLD = 10
DEFAULT_LAPSE_PENALTY = 2


class Settings(BaseSettings):
    """Library settings loaded from environment variables.

    環境変数（接頭辞 `MEMODECK_`）から読み込まれる設定クラス。
    - 学習段階のしきい値や間隔の伸び率など、スケジューラの調整値
    - ログレベル
    いずれも既定値のままで動作し、`.env` で個別に上書きできる。
    """

    learning_threshold: int = Field(
        default=DEFAULT_LEARNING_THRESHOLD,
        ge=1,
        description="Consecutive correct recalls needed to leave Learning / Learning 卒業に必要な連続正解数",
    )
    learning_interval: int = Field(
        default=DEFAULT_LEARNING_INTERVAL,
        ge=1,
        description="Interval (ticks) while learning or after a lapse / 学習中・失念後の間隔(tick)",
    )
    initial_review_interval: int = Field(
        default=DEFAULT_INITIAL_REVIEW_INTERVAL,
        ge=1,
        description="First interval (ticks) after entering Review / Review 移行直後の間隔(tick)",
    )
    interval_growth_factor: float = Field(
        default=DEFAULT_INTERVAL_GROWTH_FACTOR,
        gt=1.0,
        description="Multiplier applied to the interval on a correct review / 正解時の間隔倍率",
    )
    max_interval: int = Field(
        default=DEFAULT_MAX_INTERVAL,
        ge=1,
        description="Upper bound for the review interval (ticks) / 間隔の上限(tick)",
    )
    mastery_threshold: int = Field(
        default=DEFAULT_MASTERY_THRESHOLD,
        ge=1,
        description="Strength at which a reviewed pair becomes Mastered / Mastered 到達に必要な strength",
    )
    lapse_penalty: int = Field(
        default=DEFAULT_LAPSE_PENALTY,
        ge=0,
        description="Strength removed on a lapse / 失念時に減らす strength",
    )

    log_level: str = Field(
        default="INFO",
        description="Stdlib log level name / ログレベル名",
    )

    # Pydantic v2 settings config
    # - env_prefix: 他アプリの環境変数と衝突しないよう接頭辞を付ける
    # - extra: .env に存在する未使用キーを無視
    model_config = SettingsConfigDict(
        env_prefix="MEMODECK_",
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: object) -> str:
        level = str(value or "").strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {value!r}")
        return level

    @model_validator(mode="after")
    def _check_interval_bounds(self) -> "Settings":
        """Reject interval combinations the cap would silently truncate."""

        if self.initial_review_interval > self.max_interval:
            raise ValueError("initial_review_interval must not exceed max_interval")
        if self.learning_interval > self.max_interval:
            raise ValueError("learning_interval must not exceed max_interval")
        return self


settings = Settings()
