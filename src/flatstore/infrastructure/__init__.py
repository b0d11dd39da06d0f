"""Infrastructure layer: snapshot persistence on the local filesystem."""
