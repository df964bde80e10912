"""Tour API: a REST backend for the tour resource."""
