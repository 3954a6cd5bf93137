"""Business services: pure calculations and database-backed operations."""
