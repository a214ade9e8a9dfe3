"""
Configuration and constants for the report reconstruction pipeline.

This module provides:
- Logging setup
- Processing parameters for classification, canonicalization and rendering
- Export settings
- Environment overrides
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional
import logging

# ============================================================================
# Logging Configuration
# ============================================================================

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("report_recon")


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class ClassifierConfig:
    """Line classification configuration."""
    # Lines at or below this length are dropped as noise (page numbers etc.)
    min_prose_length: int = 30


@dataclass
class CanonicalConfig:
    """Skeleton reconciliation configuration."""
    # Match an input chapter when it contains the skeleton title's trailing keyword(s)
    keyword_match: bool = True
    # How many trailing skeleton words must all appear in the input title
    keyword_count: int = 1
    # A bare "BAB II" title claims skeleton slot 2
    match_bare_numerals: bool = True


@dataclass
class RenderConfig:
    """Rendering configuration shared by the structured and paginated outputs."""
    page_width: float = 595.28  # A4 in points
    page_height: float = 841.89
    # Rough characters per page used for TOC page estimates
    chars_per_page: int = 2800
    # Pages taken by the cover page before the table of contents
    cover_pages: int = 1


@dataclass
class ExportConfig:
    """Export configuration."""
    formats: List[str] = field(default_factory=lambda: ["docx", "pdf", "txt"])
    docx_template: Optional[str] = None


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    canonical: CanonicalConfig = field(default_factory=CanonicalConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    # Citation style used for the bibliography; None keeps raw reference lines
    citation_style: Optional[str] = None
    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    if os.environ.get("REPORT_RECON_DEBUG", "").lower() == "true":
        config.debug_mode = True

    style = os.environ.get("REPORT_RECON_CITATION_STYLE")
    if style:
        config.citation_style = style

    min_length = os.environ.get("REPORT_RECON_MIN_PROSE_LENGTH")
    if min_length:
        try:
            config.classifier.min_prose_length = int(min_length)
        except ValueError:
            logger.warning(f"Ignoring invalid REPORT_RECON_MIN_PROSE_LENGTH: {min_length}")

    return config


# ============================================================================
# JSON Schema Version
# ============================================================================

JSON_SCHEMA_VERSION = "1.0"
