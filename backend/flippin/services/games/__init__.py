"""Game domain services: deck, timer, room rules and registry.

This package contains the game rules engine. Socket handlers and HTTP
routes import from here; nothing in it knows about Flask requests.
"""
