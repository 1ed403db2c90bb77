"""HTTP export service."""
