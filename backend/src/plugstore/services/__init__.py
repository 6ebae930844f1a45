"""Business logic services for the Plugstore backend."""
