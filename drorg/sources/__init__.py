"""Remote-side collaborators: the Drive listing adapter and credential storage."""
