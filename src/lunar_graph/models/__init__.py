"""Graph and risk models."""
