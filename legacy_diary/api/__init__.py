"""HTTP API for the Digital Legacy Diary."""
