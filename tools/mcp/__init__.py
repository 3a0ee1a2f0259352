# CUI // SP-PROPIN
"""MCP JSON-RPC dispatch for the Scope-to-SOW tools and widget resource."""
