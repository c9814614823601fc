"""Shared utilities for PairFlix."""
