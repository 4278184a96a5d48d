"""Quote CRUD and amount calculation."""
