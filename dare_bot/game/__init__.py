"""
Game Package

This package contains the game logic:
- Card selection with level fallback
- Seat-relative card text personalization
- Round tracking and manual status overrides
- Proof voting and verdicts
- The party manager that ties them together for the handlers
"""
