from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

PROJECT_ROOT = Path(__file__).resolve().parents[2]


class Settings(BaseSettings):
    # Application Information
    app_name: str = Field(default="LabPro LMS")
    app_description: str = Field(default="Course enrollment and progress backend")
    app_version: str = Field(default="1.0.0")
    app_url: str = Field(default="http://localhost:8000")
    debug: bool = Field(default=True)
    production: bool = Field(default=False)
    timezone: str = Field(default="UTC")

    # Database Configuration
    db_connection: Literal["postgresql", "sqlite"] = Field(default="postgresql")
    db_host: str = Field(default="127.0.0.1")
    db_port: int = Field(default=5432)
    db_database: str = Field(default="labpro_lms")
    db_username: str = Field(default="postgres")
    db_password: str = Field(default="postgres")
    database_url: Optional[str] = Field(default=None)

    # Security Settings
    cors_allowed_origins: List[str] = Field(default=["http://localhost:3000"])

    # JWT Configuration
    jwt_secret: str = Field(default="your-secret-key-change-in-production")
    jwt_algorithm: str = Field(default="HS256")
    jwt_user_expiration: int = Field(default=24)  # hours
    jwt_issuer: str = Field(default="LabPro LMS")

    # Redis / rate limiting
    redis_url: Optional[str] = Field(default=None)
    rate_limit: str = Field(default="60/minute")

    # File Uploads
    upload_dir: str = Field(default="storage")
    max_image_size_mb: int = Field(default=5)
    max_pdf_size_mb: int = Field(default=10)
    max_video_size_mb: int = Field(default=100)

    # Certificates, stored under the upload directory
    certificate_folder: str = Field(default="certificates")

    # Module reordering: lenient | unique | contiguous
    reorder_validation: Literal["lenient", "unique", "contiguous"] = Field(
        default="lenient"
    )

    # Logging
    log_level: str = Field(default="info")
    log_file: str = Field(default="logs/app.log")

    # Pagination
    default_page_size: int = Field(default=10)
    max_page_size: int = Field(default=100)

    # Admin Defaults
    admin_default_username: str = Field(default="admin")
    admin_default_email: str = Field(default="admin@example.com")
    admin_default_password: str = Field(default="Admin@123")

    @field_validator("cors_allowed_origins", mode="before")
    def validate_cors(cls, v):
        if isinstance(v, str):
            items = [x.strip() for x in v.split(",") if x.strip()]
            return items if items else ["http://localhost:3000"]
        return v

    @property
    def storage_path(self) -> Path:
        """Upload directory, relative paths resolved against the project root"""
        path = Path(self.upload_dir)
        if not path.is_absolute():
            path = PROJECT_ROOT / path
        return path

    @property
    def sqlalchemy_url(self) -> str:
        if self.database_url:
            return self.database_url
        if self.db_connection == "sqlite":
            return f"sqlite:///{self.db_database}.db"
        return "postgresql+psycopg2://{user}:{password}@{host}:{port}/{database}".format(
            user=self.db_username,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_database,
        )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }


def load_settings():
    try:
        return Settings()
    except ValidationError as e:
        print("❌ Validation Error:", e)
        raise


settings = load_settings()
