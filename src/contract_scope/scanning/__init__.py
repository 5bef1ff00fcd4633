"""Repository scanning: source enumeration and framework detection."""

from .framework import ANCHOR, METAPLEX, NATIVE, UNKNOWN, detect_framework
from .source import ScanStats, SourceFile, enumerate_sources

__all__ = [
    "SourceFile",
    "ScanStats",
    "enumerate_sources",
    "detect_framework",
    "ANCHOR",
    "METAPLEX",
    "NATIVE",
    "UNKNOWN",
]
