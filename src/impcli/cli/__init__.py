"""imp command-line interface."""
