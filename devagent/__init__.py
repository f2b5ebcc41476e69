"""devagent - per-workspace development agent."""
