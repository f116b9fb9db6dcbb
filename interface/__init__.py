"""
Interface package: ways for a human to play against the AI.

Modules:
    client - MoveRequester: asks the web endpoint for a move and falls back
             to a random legal move on any failure.
    cli    - Terminal front end. Run as: python -m interface.cli
"""
