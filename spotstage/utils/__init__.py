"""
Shared helpers for paths, playlists, and human-readable formatting.
"""
