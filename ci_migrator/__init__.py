"""ci_migrator

Core of the CI scan-integration audit/migration toolkit.

This package is intentionally free of orchestration concerns (no git, no CLI,
no discovery). It contains:

- :mod:`ci_migrator.patterns` - pattern catalogs (pure data)
- :mod:`ci_migrator.scan`     - evidence scanner + classifier
- :mod:`ci_migrator.transform` - transform engine + backup/rollback manager
- :mod:`ci_migrator.dialects` - path -> CI dialect label
- :mod:`ci_migrator.io`       - atomic file writes + CSV sink
"""

__version__ = "0.1.0"
