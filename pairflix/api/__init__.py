"""API routers for PairFlix."""
