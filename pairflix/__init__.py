"""PairFlix backend: application settings, audit log and admin API."""
