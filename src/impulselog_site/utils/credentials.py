"""
Credential normalization helpers.

Hosting dashboards store multi-line PEM material in several shapes: with real newlines, with
literal `\\n` escapes, or collapsed onto a single line. `format_private_key` turns all three
into a PEM document the TLS stack accepts.
"""

import re
import tempfile
from typing import Optional

PEM_BLOCK_PATTERN = re.compile(r"-----BEGIN ([A-Z ]+)-----(.*?)-----END \1-----")


def format_private_key(key: Optional[str]) -> Optional[str]:
    """
    Normalize a PEM-encoded key (or certificate bundle) to real newlines.

    - Values that already contain newlines are returned as-is.
    - Literal `\\n` sequences are replaced with newlines.
    - A single-line value is re-wrapped: every `BEGIN`/`END` block has its base64 body split
      into 64-character lines.

    Args:
        key: The raw value from configuration.

    Returns:
        Optional[str]: The normalized PEM text; falsy input is returned unchanged.
    """
    if not key:
        return key

    if "\n" in key:
        return key

    if "\\n" in key:
        return key.replace("\\n", "\n")

    blocks = PEM_BLOCK_PATTERN.findall(key)
    if not blocks:
        return key

    formatted = []
    for label, body in blocks:
        body = body.strip().replace(" ", "")
        lines = [body[i:i + 64] for i in range(0, len(body), 64)] or [body]
        formatted.append(f"-----BEGIN {label}-----\n" + "\n".join(lines) + f"\n-----END {label}-----")
    return "\n".join(formatted)


def write_pem_tempfile(pem: str) -> str:
    """Write normalized PEM text to a private temp file and return its path."""
    formatted = format_private_key(pem) or ""
    if not formatted.endswith("\n"):
        formatted += "\n"

    handle = tempfile.NamedTemporaryFile("w", suffix=".pem", prefix="impulselog-", delete=False)
    with handle:
        handle.write(formatted)
    return handle.name
