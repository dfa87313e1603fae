"""Core building blocks: API layer, sessions and local storage."""
