"""Business logic services: catalog access, search, recommendations and chat."""
