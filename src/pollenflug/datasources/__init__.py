"""External data source integrations.

Each subdirectory is one data source with a consistent structure:

    datasources/{name}/
    ├── __init__.py       # Public API re-exports
    ├── client.py         # API URLs, constants
    └── {feature}.py      # Fetch functions (one per endpoint/concept)

Fetch functions return the pydantic models from ``pollenflug.schemas`` and
raise ``TransportError`` for anything that goes wrong on the wire.
"""
