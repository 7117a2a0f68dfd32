"""Configuration and negotiation orchestration."""
