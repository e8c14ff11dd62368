"""Blueprint HTTP del generatore di ricorrenze."""
