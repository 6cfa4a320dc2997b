"""Business services: the lot-accounting engine and its repositories."""
