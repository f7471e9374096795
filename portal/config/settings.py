"""
Configuration Management for the Palawan Collective Portal

Every section reads its own environment prefix (and .env) via pydantic-settings.

DESIGN DECISION: One module owns every setting the portal reads.
External services (Gemini, Cloudinary, Google Sheets) are optional:
their settings are loaded lazily so the portal runs with only local
storage configured.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CloudinarySettings(BaseSettings):
    """Cloudinary object storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="CLOUDINARY_",
        extra="ignore"
    )

    cloud_name: str = Field(
        ...,
        description="Cloud name of the Cloudinary account receiving uploads"
    )
    api_key: str = Field(
        ...,
        description="Key for the Cloudinary upload API"
    )
    api_secret: str = Field(
        ...,
        description="Secret paired with the upload API key"
    )
    upload_folder: str = Field(
        default="portal-uploads",
        description="Folder that uploaded images are placed in"
    )


class GoogleSheetsSettings(BaseSettings):
    """Google Sheets task/rollup table configuration."""

    model_config = SettingsConfigDict(
        env_prefix="GOOGLE_SHEETS_",
        extra="ignore"
    )

    credentials_path: str = Field(
        ...,
        description="Service account key file used to reach the rollup spreadsheet"
    )
    spreadsheet_id: str = Field(
        ...,
        description="Spreadsheet receiving task rows and daily rollups"
    )

    # Sheet names within the spreadsheet
    tasks_sheet_name: str = Field(
        default="Tasks",
        description="Name of the sheet holding task rows"
    )
    rollups_sheet_name: str = Field(
        default="DailyRollups",
        description="Name of the sheet holding daily cost rollups"
    )

    @field_validator('credentials_path')
    @classmethod
    def validate_credentials_path(cls, v: str) -> str:
        """A missing key file only warns; it may be mounted after start-up."""
        if not Path(v).exists():
            import warnings
            warnings.warn(
                f"Google credentials file not found at {v}. "
                "Make sure it exists before running the application."
            )
        return v


class GeminiSettings(BaseSettings):
    """Gemini configuration for receipt extraction."""

    model_config = SettingsConfigDict(
        env_prefix="GEMINI_",
        extra="ignore"
    )

    api_key: str = Field(
        ...,
        description="Key for the Gemini receipt extraction calls"
    )
    model_name: str = Field(
        default="gemini-1.5-flash",
        description="Model that reads receipt photos"
    )
    max_tokens: int = Field(
        default=2048,
        ge=100,
        le=8192,
        description="Output token cap for one extraction reply"
    )
    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sampling temperature; keep low so line items are copied, not invented"
    )


class AppSettings(BaseSettings):
    """
    Local persistence, display and upload limits.

    Unprefixed variables, e.g. DATA_DIR and WEEKLY_WINDOW_DAYS.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Local persistence
    data_dir: str = Field(
        default="data",
        description="Directory holding snapshots and attachments"
    )
    projects_snapshot_file: str = Field(
        default="projects.json",
        description="File name of the projects snapshot"
    )
    blog_snapshot_file: str = Field(
        default="blog_posts.json",
        description="File name of the blog posts snapshot"
    )
    attachments_dir: str = Field(
        default="attachments",
        description="Sub-directory of data_dir for attachment blobs"
    )

    # Display
    default_currency: str = Field(
        default="PHP",
        description="Currency shown when the site first loads"
    )
    weekly_window_days: int = Field(
        default=7,
        ge=1,
        le=31,
        description="Days reached back from the week-ending date; the window covers this many days plus the reference day"
    )

    # File upload limits
    max_upload_size_mb: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Maximum upload file size in MB"
    )
    supported_image_formats: str = Field(
        default="jpg,jpeg,png,webp",
        description="Comma-separated list of supported image formats"
    )

    @property
    def supported_formats_list(self) -> list[str]:
        """Get supported formats as a list."""
        return [fmt.strip().lower() for fmt in self.supported_image_formats.split(",")]

    @property
    def max_upload_size_bytes(self) -> int:
        return self.max_upload_size_mb * 1024 * 1024

    @property
    def projects_snapshot_path(self) -> Path:
        return Path(self.data_dir) / self.projects_snapshot_file

    @property
    def blog_snapshot_path(self) -> Path:
        return Path(self.data_dir) / self.blog_snapshot_file

    @property
    def attachments_path(self) -> Path:
        return Path(self.data_dir) / self.attachments_dir


class Settings(BaseSettings):
    """
    Root settings container.

    One property per section; optional services fail only when asked for.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Sections are built on access so a missing API key only disables its feature

    @property
    def cloudinary(self) -> CloudinarySettings:
        return CloudinarySettings()

    @property
    def google_sheets(self) -> GoogleSheetsSettings:
        return GoogleSheetsSettings()

    @property
    def gemini(self) -> GeminiSettings:
        return GeminiSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Process-wide settings, built once.

    Call get_settings.cache_clear() after changing the environment.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Report which settings sections load, for the Settings page.

    Returns a dict of {setting_name: is_valid}, plus a
    "<name>_error" entry for each section that failed to load.
    """
    results = {}
    settings = get_settings()

    sections = {
        "gemini": lambda: settings.gemini,
        "cloudinary": lambda: settings.cloudinary,
        "google_sheets": lambda: settings.google_sheets,
        "app": lambda: settings.app,
    }

    for name, load in sections.items():
        try:
            load()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
