"""Game domain services: deck, session engine, scoring and timers.

This package contains pure domain logic imported by HTTP routes and
socket handlers, keeping transport concerns separated from core game
mechanics. Nothing here touches Flask or the database.
"""
