"""Core (UI-agnostic) coffee sales dashboard logic.

This package contains:
- data loading (XLSX -> pandas) and row normalization
- filter state and filtering
- aggregation / page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
