"""Platform-facing modules used by the governor core."""
