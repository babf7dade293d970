"""GitHub Actions status relay for Radicle CI broker events."""
