"""pytest fixtures provided by the framework."""
