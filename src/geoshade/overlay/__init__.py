"""Map overlay derivation, notices and synchronization."""
