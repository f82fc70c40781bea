"""buildtail command line interface."""
