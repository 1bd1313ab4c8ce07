"""Core (UI-agnostic) guest-feedback dashboard logic.

This package contains:
- catalog loading (fleets/ships, sheets, metrics)
- filter state with the fleet -> ship cascade
- payload builders for the four backend query kinds
- result interpretation (JSON-serializable payloads)
"""
