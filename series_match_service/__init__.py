"""Find the other parts of a creator's video series using text embeddings and user feedback."""
