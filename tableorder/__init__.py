"""Table-side ordering client: cart, checkout and order tracking."""
