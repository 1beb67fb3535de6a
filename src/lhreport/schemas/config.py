"""Configuration schema — validates report-config.yml."""

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

_DEFAULT_LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]


class ContactInfo(BaseModel):
    """Contact block printed in the report footer."""

    email: str = ""
    phone: str = ""
    website: str = ""


class RendererSettings(BaseModel):
    """Headless Chromium settings used when printing the PDF."""

    headless: bool = True
    timeout_ms: int = 60_000
    settle_ms: int = 5_000  # extra wait after network-idle so fonts finish painting
    viewport_width: int = 794  # A4 width at 96 dpi
    viewport_height: int = 2000
    device_scale_factor: float = 2
    launch_args: list[str] = list(_DEFAULT_LAUNCH_ARGS)

    @field_validator("timeout_ms", "viewport_width", "viewport_height")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("settle_ms")
    @classmethod
    def must_not_be_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v


class ReportConfig(BaseModel):
    """Top-level configuration loaded from report-config.yml.

    Every field has a default, so an empty file (or no file at all) yields
    a working configuration that uses the packaged template.
    """

    # Template; empty means the packaged templates/report.html
    template_path: str = ""

    # Output
    output_directory: str = Field(
        default_factory=lambda: os.environ.get("UPLOAD_DIR", "./uploads")
    )
    base_url: str = "/files"
    unique_filenames: bool = True  # random suffix after the timestamp
    keep_html: bool = False  # leave the working HTML next to the PDF

    # Content
    escape_html: bool = False  # legacy output interpolates audit text raw
    decimal_mark: str = ","
    contact: ContactInfo = ContactInfo()

    renderer: RendererSettings = RendererSettings()

    @field_validator("decimal_mark")
    @classmethod
    def single_character(cls, v: str) -> str:
        if len(v) != 1:
            raise ValueError("decimal_mark must be a single character")
        return v

    @field_validator("base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @model_validator(mode="after")
    def check_template_exists(self) -> "ReportConfig":
        if self.template_path:
            p = Path(self.template_path)
            if not p.is_file():
                raise ValueError(f"template_path does not exist: {self.template_path}")
        return self
