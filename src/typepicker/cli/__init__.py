"""CLI sub-commands for typepicker."""
