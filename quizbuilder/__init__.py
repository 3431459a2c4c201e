"""Quiz authoring and quiz taking service."""
