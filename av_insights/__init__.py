"""
AV Insights Pipeline

Ingests autonomous-vehicle industry news from RSS feeds, gates it through a
keyword heuristic and an LLM classifier, and stores the results in SQLite.
"""

__version__ = "1.0.0"
