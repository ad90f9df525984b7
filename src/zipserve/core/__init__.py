"""Core building blocks: archive access, site resolution, HTTP serving."""
