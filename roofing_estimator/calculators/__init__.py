"""
Deterministic estimation engine.

Pure math, no I/O beyond the cached reference catalogs.
Given measurements, an assembly configuration and price overrides,
produce itemized order quantities and dollar totals for each roofing system.
"""
