#!/usr/bin/env python
"""
Command-line interface for the Report Reconstruction Pipeline.

Usage:
    python -m report_recon.cli --input <draft> --output <output_dir> [options]

Examples:
    # Format a PDF draft with the default academic style
    python -m report_recon.cli --input draft.pdf --output ./output --format all

    # Take the style from an exemplar and format references in APA
    python -m report_recon.cli --input draft.docx --template contoh.pdf --citation-style APA

    # Override cover page fields
    python -m report_recon.cli --input draft.pdf --output ./output --author "Budi" --nim 12345
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict

# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("report_recon")

EXPORT_FORMATS = ["docx", "pdf", "txt", "json"]


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        description="Report Reconstruction Pipeline - Rebuild a draft manuscript as a canonical academic report",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Format a draft and export all formats:
    python -m report_recon.cli --input draft.pdf --output ./output --format all

  Use an exemplar document for fonts and margins:
    python -m report_recon.cli --input draft.docx --template contoh.docx

  Plain text input (already extracted):
    python -m report_recon.cli --input draft.txt --output ./output
        """
    )

    # Required arguments
    parser.add_argument(
        "--input", "-i",
        required=True,
        help="Draft manuscript (PDF, DOCX, or extracted .txt)"
    )

    parser.add_argument(
        "--output", "-o",
        default="./output",
        help="Output directory for generated files (default: ./output)"
    )

    # Optional arguments
    parser.add_argument(
        "--template", "-t",
        default=None,
        help="Exemplar PDF/DOCX to take the style from (default: academic default)"
    )

    parser.add_argument(
        "--format", "-f",
        nargs="+",
        default=None,
        choices=EXPORT_FORMATS + ["all"],
        help="Output format(s) (default: docx pdf txt)"
    )

    parser.add_argument(
        "--name",
        default=None,
        help="Base name for output files (default: input file stem)"
    )

    parser.add_argument(
        "--citation-style",
        choices=["APA", "IEEE", "Chicago", "Harvard"],
        default=None,
        help="Format parsed references in this citation style"
    )

    parser.add_argument(
        "--min-prose-length",
        type=int,
        default=None,
        help="Lines at or below this length are dropped as noise (default: 30)"
    )

    parser.add_argument(
        "--no-keyword-match",
        action="store_true",
        help="Only reuse input chapters whose titles start with the canonical title"
    )

    # Cover page
    parser.add_argument("--title", default=None, help="Report title")
    parser.add_argument("--author", default=None, help="Author name")
    parser.add_argument("--nim", dest="student_id", default=None, help="Student ID (NIM)")
    parser.add_argument("--program", default=None, help="Study program")
    parser.add_argument("--university", default=None, help="University name")
    parser.add_argument("--year", default=None, help="Year shown on the cover")

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug mode (re-raise errors)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    return parser


def metadata_from_args(args) -> Dict[str, Any]:
    """Cover page overrides given on the command line."""
    fields = ("title", "author", "student_id", "program", "university", "year")
    return {name: getattr(args, name) for name in fields if getattr(args, name) is not None}


def run_pipeline(args) -> int:
    """Run the report reconstruction pipeline."""
    from report_recon.config import get_config
    from report_recon.utils.assembler import DocumentAssembler
    from report_recon.utils.errors import ReportReconError
    from report_recon.utils.export import DocumentExporter
    from report_recon.utils.io import ensure_dir, load_exemplar_metrics, load_source

    start_time = time.time()

    output_dir = ensure_dir(args.output)
    input_path = Path(args.input)

    config = get_config()
    config.debug_mode = config.debug_mode or args.debug
    if args.citation_style:
        config.citation_style = args.citation_style
    if args.min_prose_length is not None:
        config.classifier.min_prose_length = args.min_prose_length
    if args.no_keyword_match:
        config.canonical.keyword_match = False

    try:
        if input_path.suffix.lower() == ".txt":
            draft_text = input_path.read_text(encoding="utf-8")
        else:
            draft_text = load_source(input_path)
        exemplar = load_exemplar_metrics(args.template) if args.template else None
    except (ReportReconError, FileNotFoundError) as e:
        logger.error(str(e))
        return 1

    assembler = DocumentAssembler(config)

    logger.info("Formatting document...")
    try:
        result = assembler.process(draft_text, exemplar=exemplar, metadata=metadata_from_args(args))
    except ReportReconError as e:
        logger.error(f"Formatting failed: {e}")
        if args.debug:
            raise
        return 1

    exporter = DocumentExporter(
        output_dir,
        args.name or input_path.stem,
        docx_template=config.export.docx_template,
    )
    export_results = exporter.export(result, args.format or config.export.formats)
    for fmt, handle in export_results.items():
        logger.info(f"Exported {fmt}: {handle}")

    elapsed = time.time() - start_time
    doc = result.document
    metrics = doc.metrics

    if not args.quiet:
        print("\n" + "=" * 60)
        print("REPORT RECONSTRUCTION COMPLETE")
        print("=" * 60)
        print(f"Source: {input_path}")
        print(f"Output: {output_dir}")
        print(f"Processing time: {elapsed:.2f}s")
        print()
        print("Structure:")
        print(f"  Chapters: {len(doc.sections)} ({metrics.chapters_synthesized} synthesized)")
        print(f"  Tables: {len(doc.tables)}  Figures: {len(doc.figures)}")
        print(f"  References: {len(doc.references)}  Appendices: {len(doc.appendices)}")
        print(f"  Pages (PDF): {result.page_stream.page_count}")
        print(f"  Lines: {metrics.lines_total} "
              f"(noise dropped: {metrics.noise_lines_dropped})")
        if metrics.warnings:
            print()
            print("Warnings:")
            for warning in metrics.warnings:
                print(f"  - {warning}")
        print("=" * 60)

    return 0


def main():
    """Main entry point."""
    parser = setup_argparser()
    args = parser.parse_args()

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.getLogger("report_recon").setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)
        logging.getLogger("report_recon").setLevel(logging.ERROR)

    try:
        exit_code = run_pipeline(args)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.debug:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
