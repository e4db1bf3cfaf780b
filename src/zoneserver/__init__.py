"""zonesync server — HTTP API and CLI around the zone edit session."""
