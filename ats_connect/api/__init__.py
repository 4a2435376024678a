"""HTTP surface for connection management and webhook delivery."""
