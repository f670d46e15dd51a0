"""Allow ``python -m record_import_cli`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m record_import_cli`` behaves identically to the
``record-import-cli`` console script.
"""

from __future__ import annotations

from record_import_cli.cli.app import cli

if __name__ == "__main__":
    cli()
