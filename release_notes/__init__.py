"""Generate release notes from merged GitHub pull requests."""
