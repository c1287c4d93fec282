"""HTTP surface for the upload form."""
