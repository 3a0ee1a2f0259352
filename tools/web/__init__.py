# CUI // SP-PROPIN
"""Flask HTTP transport: /mcp endpoint, health checks and public files."""
