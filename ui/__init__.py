"""HTTP server and smoke client for the audit service."""
