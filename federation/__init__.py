"""Third-party identity federation: OAuth grant exchange and local account reconciliation."""
