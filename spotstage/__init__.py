"""
spotstage: queue external music downloads into a staging area and promote
the results into a curated music library.
"""

__version__ = "0.1.0"
