"""Core document model, errors and configuration for kptedit."""
