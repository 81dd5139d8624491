"""
File parsers module.

Redirect CSV reading and writing.
"""

from parsers.redirect_csv_parser import (
    ImportRow,
    MalformedRecord,
    decode_upload,
    iter_redirect_records,
    write_redirects_csv,
)

__all__ = [
    "ImportRow",
    "MalformedRecord",
    "decode_upload",
    "iter_redirect_records",
    "write_redirects_csv",
]
