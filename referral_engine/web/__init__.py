"""HTTP API реферального кабинета."""
