"""reelsense: semantic video discovery service."""
