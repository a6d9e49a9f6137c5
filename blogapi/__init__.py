"""Blog API account security core."""
