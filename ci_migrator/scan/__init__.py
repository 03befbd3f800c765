"""Evidence scanning and classification."""

from ci_migrator.scan.classifier import RULES, classify, invocation_style
from ci_migrator.scan.evidence import scan, scan_file

__all__ = ["RULES", "classify", "invocation_style", "scan", "scan_file"]
