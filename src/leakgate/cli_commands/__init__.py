"""CLI sub-commands for leakgate."""
