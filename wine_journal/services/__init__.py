"""Business logic services for Wine Journal."""
