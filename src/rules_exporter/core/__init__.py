"""Core domain: models, catalog, cache, registry, evaluation and encoding."""
