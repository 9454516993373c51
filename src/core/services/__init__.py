"""Use-case services (clone workflow, bootstrap, SSH account setup)."""
