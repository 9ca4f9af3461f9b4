"""Domain Layer: request, outcome and error models plus the ports they flow through."""
