"""
Redirect admin from the command line.

Usage:
    # Import a CSV (Mac/Excel files: add --detect-line-endings)
    python scripts/redirects_cli.py import redirects.csv

    # Export the current list
    python scripts/redirects_cli.py export -o 301_redirects.csv

    # Clear the list (asks for confirmation unless --yes)
    python scripts/redirects_cli.py clear
"""

import argparse
import mimetypes
import sys
from pathlib import Path

# Add backend to path
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from config import settings
from exceptions import AppError
from models.redirect import UploadedFile
from services.redirect_import_service import get_redirect_import_service
from services.redirect_export_service import get_redirect_export_service
from services.redirect_clear_service import get_redirect_clear_service


def cmd_import(args) -> int:
    path = Path(args.file)
    if not path.is_file():
        print(f"File not found: {path}")
        return 1

    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"

    with open(path, "rb") as fh:
        upload = UploadedFile(
            name=path.name,
            content_type=content_type,
            size=path.stat().st_size,
            stream=fh,
        )
        report = get_redirect_import_service().import_file(
            upload,
            auto_detect_line_endings=args.detect_line_endings,
        )

    print(report.to_text())
    if report.rejected:
        return 1

    print(f"\n{report.added} added, {report.skipped} skipped / {report.total_rows} rows")
    return 0


def cmd_export(args) -> int:
    buffer = get_redirect_export_service().export()
    content = buffer.getvalue()

    if args.output == "-":
        sys.stdout.buffer.write(content)
        return 0

    output = Path(args.output or settings.export_filename)
    output.write_bytes(content)
    print(f"Exported {len(content)} bytes to {output}")
    return 0


def cmd_clear(args) -> int:
    if not args.yes:
        answer = input(
            "This removes every redirect and cannot be undone. "
            "Export first if you need a backup. Continue? [y/N] "
        )
        if answer.strip().lower() not in ("y", "yes"):
            print("Aborted.")
            return 1

    removed = get_redirect_clear_service().clear()
    print(f"Removed {removed} redirects.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bulk import, export and clear 301 redirects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_import = sub.add_parser("import", help="Import redirects from a CSV file")
    p_import.add_argument("file", help="CSV file with source,destination rows")
    p_import.add_argument(
        "--detect-line-endings",
        action="store_true",
        help="Treat bare CR as a line ending (CSV saved by Excel on a Mac)",
    )
    p_import.set_defaults(func=cmd_import)

    p_export = sub.add_parser("export", help="Export redirects to CSV")
    p_export.add_argument(
        "-o", "--output",
        help=f"Output file ('-' for stdout, default {settings.export_filename})",
    )
    p_export.set_defaults(func=cmd_export)

    p_clear = sub.add_parser("clear", help="Remove all redirects")
    p_clear.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    p_clear.set_defaults(func=cmd_clear)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except AppError as e:
        print(f"Error [{e.code}]: {e.message}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
