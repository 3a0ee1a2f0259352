# CUI // SP-PROPIN
"""Statement of Work generation for the Scope-to-SOW server.

Modules:
    sow_schema    — generate_sow argument validation and JSON Schema
    sow_renderer  — deterministic SOW document and markdown rendering
"""
