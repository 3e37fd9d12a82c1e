"""
Financial Plan Engine - Source Package

The aggregation and override engine behind the monthly financial plan
(macro category -> category -> causale, preventivo vs consuntivo).

DESIGN PRINCIPLES:
1. The base dataset is never mutated - user edits live in an overlay
2. Roll-ups are recomputed on every read, never cached
3. Data-quality problems degrade gracefully, they are not fatal
4. Every save produces an auditable log of the overridden cells
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Financial Plan Team"
