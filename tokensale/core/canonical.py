"""
tokensale/core/canonical.py

RFC 8785 (JCS) encoding for stored and signed records.

Two processes encoding the same Config always produce the same bytes,
so a signature made by one verifies in the other.
"""

try:
    import jcs as _jcs
except ImportError as exc:
    raise ImportError(
        "tokensale requires the 'jcs' package for RFC 8785 compliance.\n"
        "Install with: pip install jcs\n"
        f"Original error: {exc}"
    ) from exc


def canonicalize(obj: dict) -> bytes:
    """
    Encode obj as canonical JSON bytes.

    Uint128 values must already be decimal strings: JCS writes numbers
    as IEEE doubles, which cannot hold 128 bits.
    """
    return _jcs.canonicalize(obj)
