"""Core engine: value model, normalization, DDL translation, KV scripts."""
