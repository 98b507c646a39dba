"""ScoutMaster HTTP API.

Layers:
- application: use cases and port interfaces
- infrastructure: adapters over the scoutmaster package (GRID, PDF)
- api: REST routes and the frontend report transformer
"""

__version__ = "1.0.0"
