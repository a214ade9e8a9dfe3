"""Exceptions raised by the report reconstruction pipeline.

Only two conditions stop a run; everything else degrades to placeholder output
and is reported as a warning on the document metrics.
"""


class ReportReconError(Exception):
    """Base exception for pipeline errors."""
    pass


class UnsupportedFormat(ReportReconError):
    """Input file is neither a PDF nor a DOCX document."""

    def __init__(self, mime_type: str, source: str = ""):
        self.mime_type = mime_type
        self.source = source
        where = f" ({source})" if source else ""
        super().__init__(
            f"Unsupported format '{mime_type}'{where}. Please use PDF or DOCX."
        )


class PreconditionFailed(ReportReconError):
    """Rendering was requested before a style profile was established."""
    pass
