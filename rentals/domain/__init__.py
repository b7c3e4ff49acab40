"""Pure booking rules: time windows, pricing and refunds."""
