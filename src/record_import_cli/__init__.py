"""record-import-cli — command-line client for the record import service.

Manages import profiles and blobs through the service's HTTP API.
"""

from record_import_cli.version import __version__

__all__: list[str] = ["__version__"]
