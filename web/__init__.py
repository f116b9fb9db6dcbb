"""
Web application package for the AI Chess Challenge.

Provides the FastAPI REST API (move requests, evaluation, health) and serves
the chessboard.js frontend from web/static.
"""
