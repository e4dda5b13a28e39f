"""Module entrypoint.

Allows:
    python -m incident_rca
"""

from __future__ import annotations

from incident_rca.server.mcp_server import main

if __name__ == "__main__":
    main()
