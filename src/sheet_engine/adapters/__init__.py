"""Front-end adapters acting as trigger collaborators."""
