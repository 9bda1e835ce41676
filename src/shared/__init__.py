"""Cross-cutting pieces: configuration, errors, LLM backends, corpus reading."""
