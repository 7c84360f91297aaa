"""Outbound adapters: static data files, Qdrant and Gemini."""
