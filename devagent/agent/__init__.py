"""Agent internals: startup sequencing, control-plane client, git and connectivity services."""
