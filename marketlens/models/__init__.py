"""Domain models persisted in the document store."""
