"""Server core: configuration, constants, contracts and database wiring."""
