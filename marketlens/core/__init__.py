"""Prompt construction, response parsing and the generation pipeline."""
