"""
Trade Journal — portfolio accounting and risk-sizing engine
===========================================================

  ledger/       — Trade entities and their lifecycle (TradeLedger)
  valuation/    — realized P&L legs, current equity, trade stats
  risk/         — inverse position / stop sizing calculators
  performance/  — gap-filled daily equity series, benchmark comparison
  storage/      — key-value persistence and the import/export value tree
  api/          — price lookup client and the HTTP surface
"""

from tradejournal.journal import TradeJournal

__all__ = ["TradeJournal"]
