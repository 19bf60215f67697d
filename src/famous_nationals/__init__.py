"""Guess-the-notable-person quiz engine."""
