"""Report orchestrator — audit JSON in, stored PDF artifact out."""

from __future__ import annotations

import logging
import secrets
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from lhreport.errors import AssetCopyError, RenderError, TemplateLoadError, ValidationError
from lhreport.report.normalizer import normalize
from lhreport.report.template import assemble
from lhreport.schemas.audit import validate_audit_record
from lhreport.schemas.config import ReportConfig
from lhreport.schemas.report import ReportArtifact, ReportRecord
from lhreport.shared.renderer import A4_FULL_BLEED, PdfRenderer, RendererFactory
from lhreport.shared.storage import FileStore

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"
DEFAULT_TEMPLATE = TEMPLATE_DIR / "report.html"

ProgressCallback = Callable[[str], None]
"""Called with a short status message as each step starts."""


def report_filename(now: datetime | None = None, *, unique: bool = True) -> str:
    """``report-YYYYMMDD-HHMMSS.pdf``, with a random hex suffix when ``unique``."""
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    suffix = f"-{secrets.token_hex(3)}" if unique else ""
    return f"report-{stamp}{suffix}.pdf"


class ReportGenerator:
    """Sequences normalize → assets → assemble → render → store.

    ``renderer_factory`` defaults to a Playwright-backed :class:`PdfRenderer`
    built from the config; tests substitute a fake.
    """

    def __init__(
        self,
        config: ReportConfig | None = None,
        *,
        renderer_factory: RendererFactory | None = None,
        store: FileStore | None = None,
    ) -> None:
        self.config = config or ReportConfig()
        self.template_path = Path(self.config.template_path) if self.config.template_path else DEFAULT_TEMPLATE
        self.store = store or FileStore(self.config.output_directory, base_url=self.config.base_url)
        self._renderer_factory = renderer_factory or (
            lambda: PdfRenderer(self.config.renderer, keep_html=self.config.keep_html)
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def load_template(self) -> str:
        try:
            return self.template_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise TemplateLoadError(f"Could not load template {self.template_path}: {exc}") from exc

    def normalize(self, data: Any, *, strict: bool = False) -> ReportRecord:
        """Validate the payload shape and build the canonical record."""
        if not isinstance(data, dict):
            raise ValidationError(
                "Invalid data format",
                [f"audit record must be a JSON object, got {type(data).__name__}"],
            )
        if strict:
            validate_audit_record(data)
        return normalize(data, contact=self.config.contact.model_dump())

    def copy_assets(self) -> None:
        """Copy ``assets/`` and ``fonts/`` next to the output; failures are logged only."""
        template_dir = self.template_path.parent
        try:
            self.store.copy_assets(template_dir / "assets", template_dir / "fonts")
        except AssetCopyError as exc:
            logger.warning("Continuing without styling assets: %s", exc)

    def render_html(self, data: Any, *, strict: bool = False) -> str:
        """Assemble the report HTML without printing it (debug preview)."""
        record = self.normalize(data, strict=strict)
        return assemble(
            self.load_template(),
            record,
            escape=self.config.escape_html,
            decimal_mark=self.config.decimal_mark,
        )

    # ------------------------------------------------------------------
    # Full run
    # ------------------------------------------------------------------

    async def generate(
        self,
        data: Any,
        *,
        strict: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> ReportArtifact:
        """Produce a PDF from an audit payload and return its descriptor.

        Raises ``ValidationError``, ``TemplateLoadError`` or ``RenderError``;
        nothing is stored unless rendering succeeded.
        """
        started = time.perf_counter()

        def step(message: str) -> None:
            logger.debug(message)
            if on_progress:
                on_progress(message)

        step("Normalizing audit data")
        record = self.normalize(data, strict=strict)

        step("Loading template")
        template = self.load_template()

        self.store.ensure()
        step("Copying assets")
        self.copy_assets()

        step("Assembling HTML")
        html = assemble(
            template,
            record,
            escape=self.config.escape_html,
            decimal_mark=self.config.decimal_mark,
        )

        filename = report_filename(unique=self.config.unique_filenames)
        step("Rendering PDF")
        async with self._renderer_factory() as renderer:
            pdf = await renderer.render(
                html,
                A4_FULL_BLEED,
                base_dir=self.store.root,
                name=Path(filename).stem,
            )

        step("Saving PDF")
        try:
            url = self.store.store(filename, pdf)
            size = self.store.info(filename)["size"]
        except OSError as exc:
            raise RenderError(f"Could not write PDF {filename}: {exc}") from exc
        duration_ms = int((time.perf_counter() - started) * 1000)

        logger.info("Generated %s (%s bytes) in %dms", filename, size, duration_ms)
        return ReportArtifact(
            path=str(self.store.path(filename)),
            filename=filename,
            url=url,
            size=size,
            duration_ms=duration_ms,
        )
