"""Leaderboard services: the score store and clients that submit to it."""
