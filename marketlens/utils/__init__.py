"""Cross-cutting helpers: LLM gateway, fallbacks, observability."""
