"""Store adapters implementing the core capability interfaces."""
