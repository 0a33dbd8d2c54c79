"""
FinBoard - Source Package

A personal finance board: cards holding money amounts ("balances" and
"projections") arranged in ordered lists, moved by drag-and-drop,
split by partial transfers and generated as monthly installments.

DESIGN PRINCIPLES:
1. Money is integer cents, end to end
2. Totals are conserved exactly (transfers, installments)
3. Local state is updated first, persistence second
4. A persistence failure degrades the session, never ends it
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "FinBoard Team"
