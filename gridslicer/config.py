from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings


class DetectionSettings(BaseModel):
    """Configuration for automatic border detection."""

    max_lines: int = Field(default=8, ge=0, description="Maximum lines accepted per axis")
    min_spacing: float = Field(default=0.08, ge=0.0, le=1.0, description="Minimum spacing between lines (fraction of dimension)")
    expected_columns: int = Field(default=4, ge=1, description="Expected grid columns for grid detection")
    expected_rows: int = Field(default=4, ge=1, description="Expected grid rows for grid detection")
    edge_margin: float = Field(default=0.03, ge=0.0, lt=0.5, description="Lines closer than this to the border are discarded")


class ExportSettings(BaseModel):
    """Configuration for exporting crop regions."""

    pdf_render_scale: float = Field(default=2.0, gt=0, le=8.0, description="Scale used when rasterizing PDF pages")
    default_base_name: str = Field(default="image", description="Base name used when the source has no name")
    pdf_base_name: str = Field(default="pdf", description="Base name used for unnamed PDF documents")
    export_lock_timeout: int = Field(default=600, gt=0, description="Seconds before a stale export lock expires")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False

    # Redis Settings
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_db: int = 0

    # Paths (mounted volumes)
    uploads_dir: Path = Path("/app/data/uploads")
    output_dir: Path = Path("/app/data/output")

    # Job Settings
    job_timeout: int = 600  # 10 minutes
    job_result_ttl: int = 3600  # 1 hour
    session_ttl: int = 86400  # 1 day

    # Upload limits
    max_upload_mb: int = 100

    detection: DetectionSettings = DetectionSettings()
    export: ExportSettings = ExportSettings()

    @property
    def redis_url(self) -> str:
        return f"redis://{self.redis_host}:{self.redis_port}/{self.redis_db}"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_nested_delimiter = "__"


settings = Settings()
