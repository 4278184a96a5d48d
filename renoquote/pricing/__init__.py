"""Standard price catalog: reconciliation, verification and catalog reads."""
