"""Input/output adapters: JSON codec, spreadsheet exchange, value coercion."""
