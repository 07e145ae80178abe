"""
Bot Handlers Package

This package contains all bot message and command handlers:
- Command handlers for rooms, seating and turns
- Proof handlers relaying media and collecting votes
- Message handlers for text and media input
- Error handlers for exception management
"""
