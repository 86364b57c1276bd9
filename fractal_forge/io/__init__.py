"""Description files, configuration files and saved application state."""
