"""Third-party system clients."""
