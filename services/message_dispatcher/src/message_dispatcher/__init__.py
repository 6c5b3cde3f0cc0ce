"""Message dispatch worker: provider selection, delivery and execution-detail auditing."""
