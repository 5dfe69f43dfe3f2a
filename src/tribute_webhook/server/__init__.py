"""HTTP application, webhook handlers and subscriber fan-out."""
