"""covgather command line interface."""
