"""Frame analysis: motion scoring and presence tracking."""
