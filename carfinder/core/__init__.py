"""Core layer: domain models, ports and services. No adapter imports here."""
