"""Video records: upload, listing and status lifecycle."""
