"""Board client: HTTP client, board state and background refresh timers."""
