"""
Chess logic for the AI Chess Challenge.

The rules of chess come from python-chess; this package adds the game state
holder, the material evaluator and everything needed to let an LLM pick
Black's moves.

Modules:
    constants - Piece values, phase thresholds, model defaults
    errors    - Domain exceptions
    game      - GameSession, GameResult, FEN and move parsing
    evaluate  - Material evaluation for the evaluation bar
    analysis  - Hanging pieces, threats and positional heuristics
    prompts   - System / user prompt construction
    llm       - OpenAI client, model policy, reply parsing
    selection - Prompt -> model -> validated move, with random fallback
"""
