from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalysisDefaults(BaseModel):
    correlation_threshold: float = Field(0.5, ge=0, le=1)
    correlation_method: str = "pearson"
    iqr_multiplier: float = Field(1.5, ge=0)
    zscore_threshold: float = Field(3.0, ge=0)
    modified_zscore_threshold: float = Field(3.5, ge=0)
    seasonality_threshold: float = Field(0.5, ge=0, le=1)
    histogram_bins: int = Field(10, gt=0)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="TABSTATS_",
        env_nested_delimiter="__",
        env_file=".env",
        extra="ignore",
    )

    log_level: str = "INFO"
    max_rows: int = 1_000_000
    max_matrix_columns: int = 200
    defaults: AnalysisDefaults = AnalysisDefaults()


settings = Settings()
