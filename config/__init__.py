"""Runtime configuration: settings and logging preset."""
