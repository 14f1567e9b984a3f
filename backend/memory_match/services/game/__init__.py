"""Game domain services: deck, state machine, ledger, timers and sessions.

HTTP routes and socket handlers import from here; the modules below never
touch Flask request state, which keeps transport concerns separate from
the card-pair rules.
"""
